# https://github.com/ethereum/consensus-specs/blob/dev/specs/phase0/beacon-chain.md#time-parameters-1
SLOTS_PER_EPOCH = 2**5  # 32
# https://github.com/ethereum/consensus-specs/blob/dev/specs/phase0/beacon-chain.md#misc
MAX_COMMITTEES_PER_SLOT = 2**6  # 64
# Attestations older than an epoch were not includable before Deneb (EIP-7045).
# Blocks up to this many slots after the window are fetched to observe late inclusions.
MAX_INCLUSION_DELAY = SLOTS_PER_EPOCH

# Upper bound for the audited window, ~1 week of epochs
MAX_EPOCHS_SPAN = 1575
