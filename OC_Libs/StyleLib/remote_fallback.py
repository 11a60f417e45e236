"""
Remote style-transfer with local fallback.

Third-party style-transfer services are modeled as an opaque job API: a job
is submitted, then polled until it succeeds, fails or times out. Any remote
failure falls back to the local style pipeline.

Classes:
    JobStatus: Poll response from a remote service
    StyleService: Protocol a remote service client must satisfy
    RenderResult: Output buffer plus where it came from

Functions:
    run_remote_job: Submit and poll a remote job to completion
    render_with_fallback: Try the remote service, fall back to local rendering
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from OC_Libs.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REMOTE_TIMEOUT,
    JOB_STATUS_FAILED,
    JOB_STATUS_PENDING,
    JOB_STATUS_RUNNING,
    JOB_STATUS_SUCCEEDED,
)
from OC_Libs.FilterLib.errors import RemoteStyleError
from OC_Libs.FilterLib.pixel_buffer import PixelBuffer
from OC_Libs.StyleLib.style_composer import StyleComposer, StyleLike, get_default_composer

logger = logging.getLogger(__name__)

VALID_JOB_STATUSES = (JOB_STATUS_PENDING, JOB_STATUS_RUNNING, JOB_STATUS_SUCCEEDED, JOB_STATUS_FAILED)


@dataclass
class JobStatus:
    """
    Poll response from a remote style-transfer service.

    Attributes:
        status: One of pending, running, succeeded, failed
        result: Decoded output image (set on success)
        result_url: Where the service published the output, if it reports one
        error: Failure message reported by the service
    """
    status: str
    result: Optional[PixelBuffer] = None
    result_url: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self):
        self.status = str(self.status).strip().lower()
        if self.status not in VALID_JOB_STATUSES:
            raise ValueError(
                f"Unknown job status: {self.status}. Valid statuses: {', '.join(VALID_JOB_STATUSES)}"
            )

    @property
    def is_finished(self) -> bool:
        return self.status in (JOB_STATUS_SUCCEEDED, JOB_STATUS_FAILED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (the image itself is not included)."""
        return {
            "status": self.status,
            "result_url": self.result_url,
            "error": self.error,
            "has_result": self.result is not None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobStatus":
        """Create from a service's JSON response."""
        return cls(
            status=data.get("status", JOB_STATUS_PENDING),
            result_url=data.get("result_url") or data.get("resultUrl"),
            error=data.get("error"),
        )


class StyleService(Protocol):
    """Client for a remote style-transfer service."""

    def submit_job(self, buffer: PixelBuffer, style: str, params: Dict[str, Any]) -> str:
        ...

    def poll_status(self, job_id: str) -> JobStatus:
        ...


@dataclass
class RenderResult:
    """Rendered image and whether it came from the remote service or the local pipeline."""
    buffer: PixelBuffer
    source: str
    error: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == "local"


def _validate_polling(timeout: float, poll_interval: float) -> None:
    if timeout <= 0:
        raise ValueError(f"timeout must be > 0, got {timeout}")
    if poll_interval < 0:
        raise ValueError(f"poll_interval must be >= 0, got {poll_interval}")


def run_remote_job(
    service: StyleService,
    style: str,
    buffer: PixelBuffer,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_REMOTE_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> PixelBuffer:
    """
    Submit a job and poll until it finishes.

    Args:
        service: Remote service client
        style: Style name passed through to the service
        buffer: Input image
        params: Style overrides passed through to the service
        timeout: Seconds to wait before giving up
        poll_interval: Seconds between polls
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        The service's output image

    Raises:
        RemoteStyleError: If the job fails or times out, or succeeds without a
                          result of the input's dimensions
    """
    _validate_polling(timeout, poll_interval)

    job_id = service.submit_job(buffer.copy(), style, dict(params or {}))
    logger.debug(f"Submitted remote '{style}' job {job_id}")
    deadline = clock() + timeout

    while True:
        status = service.poll_status(job_id)

        if status.status == JOB_STATUS_SUCCEEDED:
            if status.result is None:
                raise RemoteStyleError(f"Remote job {job_id} succeeded without a result image")
            status.result.validate()
            if status.result.size != buffer.size:
                raise RemoteStyleError(
                    f"Remote job {job_id} returned a {status.result.width}x{status.result.height} image "
                    f"for a {buffer.width}x{buffer.height} input"
                )
            return status.result

        if status.status == JOB_STATUS_FAILED:
            raise RemoteStyleError(f"Remote job {job_id} failed: {status.error or 'no error message'}")

        if clock() >= deadline:
            raise RemoteStyleError(f"Remote job {job_id} timed out after {timeout:g}s")

        sleep(poll_interval)


def render_with_fallback(
    style: StyleLike,
    buffer: PixelBuffer,
    service: Optional[StyleService] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_REMOTE_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    composer: Optional[StyleComposer] = None,
) -> RenderResult:
    """
    Render a style remotely when a service is available, locally otherwise.

    The buffer, style name and overrides are validated locally first, so a
    bad request raises instead of being sent to the service. Any error from
    the service (including timeouts) is logged and the local pipeline
    renders the image instead.

    Raises:
        InvalidBufferError: If the buffer is malformed
        UnsupportedStyleError: If the style name is unknown
        StyleParameterError: If an override is invalid
        ValueError: If timeout or poll_interval is out of range
    """
    composer = composer or get_default_composer()
    buffer.validate()
    _validate_polling(timeout, poll_interval)
    definition = composer.get_definition(style)
    composer.plan(definition.name, params)

    error: Optional[str] = None
    if service is not None:
        try:
            result = run_remote_job(
                service, definition.name, buffer, params,
                timeout=timeout, poll_interval=poll_interval, sleep=sleep, clock=clock,
            )
            logger.info(f"Rendered style '{definition.name}' remotely")
            return RenderResult(result, "remote")
        except Exception as e:
            error = str(e)
            logger.warning(f"Remote style '{definition.name}' failed, falling back to local filter: {e}")

    return RenderResult(composer.apply(definition.name, buffer, params), "local", error)
