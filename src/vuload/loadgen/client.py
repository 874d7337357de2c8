from __future__ import annotations

import time
from dataclasses import dataclass

import httpx

from vuload.metrics import ErrorType

# Recorded as the duration of a request that never got a response.
TRANSPORT_FAILURE_DURATION_MS = 0.0


@dataclass(frozen=True, slots=True)
class RequestResult:
    url: str
    duration_ms: float
    status_code: int | None
    error_type: ErrorType | None = None

    @property
    def transport_failed(self) -> bool:
        return self.error_type is not None

    def is_success(self, threshold_ms: float) -> bool:
        if self.status_code is None:
            return False
        return 200 <= self.status_code < 300 and self.duration_ms < threshold_ms


async def send_request(
    client: httpx.AsyncClient,
    endpoint: str,
    timeout_sec: float,
) -> RequestResult:
    url = endpoint
    try:
        request = client.build_request("GET", endpoint, timeout=timeout_sec)
        url = str(request.url)
        start_mono = time.perf_counter()
        resp = await client.send(request)
    except httpx.TimeoutException:
        err = ErrorType.TIMEOUT
    except httpx.ConnectError:
        err = ErrorType.CONNECT
    except httpx.ReadError:
        err = ErrorType.READ
    except (httpx.HTTPError, httpx.InvalidURL):
        err = ErrorType.OTHER
    else:
        latency_ms = (time.perf_counter() - start_mono) * 1000.0
        return RequestResult(url=url, duration_ms=latency_ms, status_code=resp.status_code)
    return RequestResult(
        url=url,
        duration_ms=TRANSPORT_FAILURE_DURATION_MS,
        status_code=None,
        error_type=err,
    )
