"""Shortlink service.

This module contains the ShortlinkService class which implements the
shortlink lifecycle: creation with clamped expiry, resolution with expiry
and single-use checks, and the click relay hand-off.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlparse

from loguru import logger

from shortlinks.core.config import ShortlinkPolicy
from shortlinks.core.timeutils import Clock, utcnow
from shortlinks.models.shortlink import IDENTIFIER_MAX_LENGTH, ShortlinkEntry
from shortlinks.services.exceptions import (
    ShortlinkExpiredError,
    ShortlinkGoneError,
    TokenGenerationError,
    ValidationError,
)
from shortlinks.services.relay import EventRelay
from shortlinks.services.store import TieredStore
from shortlinks.services.tokens import DEFAULT_TOKEN_BYTES, generate_token
from shortlinks.tiers.base import TierUnavailableError, TokenConflictError


@dataclass
class CreatedShortlink:
    """Result of a successful create."""
    token: str
    path: str
    expires_at: Optional[datetime]
    tier: str


class ShortlinkService:
    """
    Service for shortlink business logic.

    Entry lifecycle: Active -> Consumed (single-use policy), Active ->
    Expired, or Active forever for multi-use links without expiry. No
    transition leaves Consumed or Expired.
    """

    def __init__(
        self,
        store: TieredStore,
        relay: EventRelay,
        policy: ShortlinkPolicy = ShortlinkPolicy.MULTI_USE,
        min_ttl_seconds: int = 5,
        max_ttl_seconds: int = 3600,
        default_ttl_seconds: Optional[int] = None,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        token_attempts: int = 3,
        path_prefix: str = "/s",
        clock: Clock = utcnow,
        token_factory=generate_token,
    ):
        self.store = store
        self.relay = relay
        self.policy = policy
        self.min_ttl_seconds = min_ttl_seconds
        self.max_ttl_seconds = max_ttl_seconds
        self.default_ttl_seconds = default_ttl_seconds
        self.token_bytes = token_bytes
        self.token_attempts = max(1, token_attempts)
        self.path_prefix = path_prefix.rstrip("/")
        self.clock = clock
        self.token_factory = token_factory

    @property
    def single_use(self) -> bool:
        return self.policy == ShortlinkPolicy.SINGLE_USE

    def clamp_ttl(self, ttl_seconds: Optional[int]) -> Optional[int]:
        """Clamp a requested TTL into the allowed range; None falls back to the default."""
        if ttl_seconds is None:
            ttl_seconds = self.default_ttl_seconds
        if ttl_seconds is None:
            return None
        return max(self.min_ttl_seconds, min(self.max_ttl_seconds, int(ttl_seconds)))

    def path_for(self, token: str) -> str:
        return f"{self.path_prefix}/{token}"

    @staticmethod
    def _validate_url(url: Optional[str]) -> str:
        if url is None or not str(url).strip():
            raise ValidationError("Missing url")
        url = str(url).strip()
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(f"Invalid URL format: {url}")
        return url

    @staticmethod
    def _validate_identifier(name: str, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if len(value) > IDENTIFIER_MAX_LENGTH:
            raise ValidationError(f"{name} must be at most {IDENTIFIER_MAX_LENGTH} characters")
        return value

    async def create(
        self,
        url: Optional[str],
        newsletter_id: Optional[str] = None,
        recipient_id: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> CreatedShortlink:
        """
        Create a shortlink for url.

        Args:
            url: Redirect target (http or https)
            newsletter_id: Optional campaign identifier
            recipient_id: Optional hashed recipient identifier
            ttl_seconds: Optional lifetime, clamped into the allowed range

        Returns:
            CreatedShortlink: token, resolve path and expiry

        Raises:
            ValidationError: If url is empty or not an http(s) URL, or an
                identifier is longer than the analytics columns allow
            StorageUnavailableError: If no tier accepted the write
            TokenGenerationError: If every generated token collided
        """
        url = self._validate_url(url)
        newsletter_id = self._validate_identifier("nid", newsletter_id)
        recipient_id = self._validate_identifier("rid", recipient_id)
        ttl = self.clamp_ttl(ttl_seconds)

        for attempt in range(1, self.token_attempts + 1):
            now = self.clock()
            entry = ShortlinkEntry(
                token=self.token_factory(self.token_bytes),
                url=url,
                newsletter_id=newsletter_id,
                recipient_id=recipient_id,
                created_at=now,
                expires_at=now + timedelta(seconds=ttl) if ttl is not None else None,
            )
            try:
                tier_name = await self.store.put(entry, ttl)
            except TokenConflictError as e:
                logger.warning(
                    "Token collision, regenerating",
                    attempt=attempt,
                    tier=e.tier_name,
                )
                continue

            logger.info(
                "Shortlink created",
                token=entry.token,
                tier=tier_name,
                newsletter_id=entry.newsletter_id,
                ttl_seconds=ttl,
            )
            return CreatedShortlink(
                token=entry.token,
                path=self.path_for(entry.token),
                expires_at=entry.expires_at,
                tier=tier_name,
            )

        raise TokenGenerationError(
            f"Could not generate an unused token after {self.token_attempts} attempts"
        )

    async def resolve(self, token: str, user_agent: Optional[str] = None) -> ShortlinkEntry:
        """
        Resolve a token to its entry and relay a click event.

        Returns:
            ShortlinkEntry: The resolved entry; redirect to entry.url

        Raises:
            ShortlinkNotFoundError: If no tier holds the token
            ShortlinkExpiredError: If the entry has expired
            ShortlinkGoneError: If single-use and already consumed
        """
        now = self.clock()
        stored = await self.store.get(token, now=now)
        entry = stored.entry

        if entry.is_expired(now):
            await stored.tier.delete(token)
            logger.info("Shortlink expired", token=token, tier=stored.tier.name)
            raise ShortlinkExpiredError(f"Shortlink '{token}' has expired")

        if self.single_use:
            if entry.consumed:
                raise ShortlinkGoneError(f"Shortlink '{token}' was already used")
            try:
                claimed = await stored.tier.mark_consumed(token)
            except TierUnavailableError as e:
                # Cannot prove this caller won the claim, so do not redirect
                logger.warning("Could not claim shortlink", token=token, error=e.reason)
                raise ShortlinkGoneError(f"Shortlink '{token}' could not be claimed") from e
            if not claimed:
                raise ShortlinkGoneError(f"Shortlink '{token}' was already used")
            entry.consumed = True

        self.relay.log_click(entry, user_agent=user_agent)
        return entry
