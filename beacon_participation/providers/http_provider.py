import logging
from abc import ABC
from http import HTTPStatus
from typing import Any, Callable, NoReturn, Protocol, Sequence
from urllib.parse import urljoin, urlparse

from prometheus_client import Histogram
from requests import JSONDecodeError, Response, Session
from requests.adapters import HTTPAdapter
from urllib3 import Retry

logger = logging.getLogger(__name__)


class NoHostsProvided(Exception):
    pass


class NotOkResponse(Exception):
    status: int
    text: str

    def __init__(self, *args, status: int, text: str):
        self.status = status
        self.text = text
        super().__init__(*args)


class ReturnValueValidator(Protocol):
    def __call__(self, data: Any, meta: dict, *, endpoint: str) -> None | NoReturn: ...


def data_is_any(data: Any, meta: dict, *, endpoint: str):
    pass


def data_is_dict(data: Any, meta: dict, *, endpoint: str):
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping response from {endpoint}")


def data_is_list(data: Any, meta: dict, *, endpoint: str):
    if not isinstance(data, list):
        raise ValueError(f"Expected list response from {endpoint}")


def never_raise(errors: list[Exception]) -> Exception | None:
    return None


type ForceRaise = Callable[[list[Exception]], Exception | None]


def create_session(retry_total: int, retry_backoff_factor: int, pool_maxsize: int) -> Session:
    retry_strategy = Retry(
        total=retry_total,
        status_forcelist=[418, 429, 500, 502, 503, 504],
        backoff_factor=retry_backoff_factor,
        # Last response is returned as is once retries are exhausted
        raise_on_status=False,
    )
    # Pool should fit every request allowed to be in flight to the host
    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=pool_maxsize, pool_maxsize=pool_maxsize)

    session = Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HTTPProvider(ABC):
    """
    Base provider for JSON over HTTP APIs.

    Hosts are tried in the given order until one of them responds with 200.
    Every request duration is observed by PROMETHEUS_HISTOGRAM.
    """

    PROMETHEUS_HISTOGRAM: Histogram
    PROVIDER_EXCEPTION: type[NotOkResponse] = NotOkResponse

    hosts: list[str]
    request_timeout: int

    def __init__(
        self,
        hosts: list[str],
        request_timeout: int,
        retry_total: int,
        retry_backoff_factor: int,
        pool_maxsize: int = 10,
    ):
        if not hosts or '' in hosts:
            raise NoHostsProvided(f"No hosts provided for {self.__class__.__name__}")

        self.hosts = hosts
        self.request_timeout = request_timeout
        self.session = create_session(retry_total, retry_backoff_factor, pool_maxsize)

    @staticmethod
    def _urljoin(host: str, url: str) -> str:
        return urljoin(host if host.endswith('/') else host + '/', url)

    def _get(
        self,
        endpoint: str,
        path_params: Sequence[str | int] | None = None,
        query_params: dict | None = None,
        force_raise: ForceRaise = never_raise,
        retval_validator: ReturnValueValidator = data_is_any,
    ) -> tuple[Any, dict]:
        """
        Returns (data, meta) from the first host that responded successfully.

        force_raise gets errors collected so far and may return an exception to stop
        asking the next hosts, e.g. when 404 is the expected answer.
        """
        errors: list[Exception] = []

        for host in self.hosts:
            try:
                data, meta = self._get_from_host(host, endpoint, path_params, query_params)
            except Exception as error:  # pylint: disable=broad-exception-caught
                errors.append(error)
                if to_raise := force_raise(errors):
                    raise to_raise from error

                logger.warning({
                    'msg': f'[{self.__class__.__name__}] Host [{urlparse(host).netloc}] responded with error',
                    'error': str(error),
                })
                continue

            retval_validator(data, meta, endpoint=endpoint)
            return data, meta

        raise errors[-1]

    def _get_from_host(
        self,
        host: str,
        endpoint: str,
        path_params: Sequence[str | int] | None = None,
        query_params: dict | None = None,
    ) -> tuple[Any, dict]:
        url_path = endpoint.format(*path_params) if path_params else endpoint
        domain = urlparse(host).netloc

        with self.PROMETHEUS_HISTOGRAM.time() as t:
            try:
                response = self.session.get(
                    self._urljoin(host, url_path),
                    params=query_params,
                    timeout=self.request_timeout,
                )
            except Exception as error:
                t.labels(endpoint=endpoint, code=0, domain=domain)
                logger.error({'msg': f'Request to {url_path} failed', 'error': str(error)})
                raise self.PROVIDER_EXCEPTION(status=0, text='Response error.') from error

            t.labels(endpoint=endpoint, code=response.status_code, domain=domain)
            return self._unwrap(response, url_path)

    def _unwrap(self, response: Response, url_path: str) -> tuple[Any, dict]:
        """Beacon API wraps payload into `data`, the rest of the object is metadata"""
        if response.status_code != HTTPStatus.OK:
            message = f'Response from {url_path} [{response.status_code}] with text: "{response.text}" returned.'
            logger.debug({'msg': message})
            raise self.PROVIDER_EXCEPTION(message, status=response.status_code, text=response.text)

        try:
            body = response.json()
        except JSONDecodeError as error:
            logger.debug({'msg': f'Failed to decode JSON response from {url_path}', 'text': response.text})
            raise self.PROVIDER_EXCEPTION(status=0, text='JSON decode error.') from error

        if isinstance(body, dict) and 'data' in body:
            data = body.pop('data')
            return data, body
        return body, {}

    def get_all_providers(self) -> list[str]:
        return self.hosts
