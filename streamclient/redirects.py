"""Redirect policy for the request pipeline.

The transport never follows redirects on its own. After every response the
pipeline asks a :class:`RedirectController` what to do next:

* non-redirect status: the response is final
* redirect with following disabled: the redirect response itself is final
* redirect without ``Location``: :class:`MissingLocationError`
* redirect once the chain reached ``max_redirects``: :class:`MaxRedirectsExceededError`
* otherwise: follow to the resolved ``Location``, either with the original
  method and payload (``preserve_method_on_redirect``) or as a bodyless GET

The counter is incremented for every redirect response, so
``max_redirects=N`` allows at most N requests in one chain.
"""

from dataclasses import dataclass
from enum import Enum

from streamclient.config.constants import REDIRECT_STATUS_CODES
from streamclient.core.errors import (
    MissingLocationError,
    StreamClientError,
    URLValidationError,
)
from streamclient.core.logging import get_logger
from streamclient.options import RequestOptions
from streamclient.url import resolve_location


logger = get_logger(__name__)


class RedirectState(str, Enum):
    """Lifecycle of one logical call through the redirect chain."""

    INITIAL = "initial"
    AWAITING_RESPONSE = "awaiting_response"
    REDIRECT_RECEIVED = "redirect_received"
    FOLLOWING_REDIRECT = "following_redirect"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RedirectDecision:
    """Outcome of evaluating one response."""

    state: RedirectState
    url: str
    method: str
    replay_payload: bool = False
    location: str | None = None

    @property
    def follow(self) -> bool:
        return self.state is RedirectState.FOLLOWING_REDIRECT


def is_redirect(status_code: int) -> bool:
    return status_code in REDIRECT_STATUS_CODES


class RedirectController:
    """Tracks one call chain and decides whether to follow each redirect."""

    def __init__(self, options: RequestOptions) -> None:
        self.options = options
        self.state = RedirectState.INITIAL
        self.hops: list[str] = []

    def dispatched(self) -> None:
        """A request attempt was handed to the transport."""
        self.state = RedirectState.AWAITING_RESPONSE

    def failed(self) -> None:
        """The attempt ended in an error."""
        self.state = RedirectState.ERROR

    def evaluate(
        self,
        status_code: int,
        location: str | None,
        url: str,
        method: str,
    ) -> RedirectDecision:
        """Decide the next step for a response to ``method url``.

        Raises:
            MissingLocationError: redirect response without a Location header.
            MaxRedirectsExceededError: the chain reached ``max_redirects``.
            URLValidationError: the Location of a followed redirect is malformed.
        """
        if not is_redirect(status_code):
            self.state = RedirectState.SUCCESS
            return RedirectDecision(self.state, url, method)

        self.state = RedirectState.REDIRECT_RECEIVED

        if not self.options.follow_redirects:
            resolved = location or None
            if location:
                try:
                    resolved = resolve_location(url, location)
                except URLValidationError:
                    logger.debug("redirect_location_unresolved", location=location)
            logger.debug(
                "redirect_not_followed",
                status_code=status_code,
                location=resolved,
            )
            self.state = RedirectState.SUCCESS
            return RedirectDecision(self.state, url, method, location=resolved)

        try:
            if not location:
                raise MissingLocationError(status_code, url)
            resolved = resolve_location(url, location)
            count = self.options.check_redirects(url)
        except StreamClientError:
            self.state = RedirectState.ERROR
            raise

        preserve = self.options.preserve_method_on_redirect
        next_method = method if preserve else "GET"
        self.hops.append(resolved)
        self.state = RedirectState.FOLLOWING_REDIRECT

        logger.info(
            "redirect_followed",
            status_code=status_code,
            from_url=url,
            to_url=resolved,
            method=next_method,
            redirect_count=count,
            max_redirects=self.options.max_redirects,
        )
        return RedirectDecision(
            self.state,
            resolved,
            next_method,
            replay_payload=preserve,
            location=resolved,
        )
