"""Account service orchestrating persistence, hashing, tokens, caching and fan-out."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from schemas import UserEventType, UserLoggedIn, UserRegistered

from .account import Account
from .contracts import AuthResult, CreateAccountInput, LoginInput, RegisterInput
from .errors import (
    AlreadyExistsError,
    DependencyUnavailableError,
    InactiveAccountError,
    InvalidCredentialsError,
)
from ..infrastructure.cache import SessionCache
from ..infrastructure.events import EventPublisher
from ..infrastructure.wallet import WalletClient
from ..metrics import LOGINS, REGISTRATIONS, SIDE_EFFECT_FAILURES
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

USER_CREATED_NOTIFICATION = "user-created"


class AccountStore(Protocol):
    def create_account(self, payload: CreateAccountInput) -> Account: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_id(self, account_id: str) -> Account | None: ...

    def list_accounts(self) -> list[Account]: ...


class AccountService:
    """Register, login and profile workflows.

    The repository is authoritative. The session cache, event publisher and wallet
    client are best-effort collaborators: their failures are logged and never change
    the outcome reported to the caller.
    """

    def __init__(
        self,
        repository: AccountStore,
        *,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        cache: SessionCache,
        publisher: EventPublisher,
        wallet: WalletClient,
    ) -> None:
        """Store dependencies used to orchestrate the account workflows."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens
        self._cache = cache
        self._publisher = publisher
        self._wallet = wallet

    def register(self, payload: RegisterInput) -> AuthResult:
        """Create an account, issue its first token and fan out the registration.

        Raises
        ------
        AlreadyExistsError
            When the email is already registered (pre-check or store constraint).
        """
        if self._repository.find_by_email(payload.email) is not None:
            raise AlreadyExistsError()

        account = self._repository.create_account(
            CreateAccountInput(
                email=payload.email,
                password_hash=self._hasher.hash(payload.password),
                name=payload.name,
            )
        )
        REGISTRATIONS.inc()
        token = self._tokens.issue_user_token(account.id, account.email)

        event = UserRegistered(user_id=account.id, email=account.email, name=account.name)
        event_data = event.model_dump(by_alias=True)
        self._publish(UserEventType.registered.value, event_data)
        self._wallet.notify_event(USER_CREATED_NOTIFICATION, event_data)

        logger.info("user registered: %s", account.id)
        return AuthResult(token=token, user=account.summary())

    def login(self, payload: LoginInput) -> AuthResult:
        """Authenticate credentials and warm the session cache.

        Unknown emails and wrong passwords raise the same ``InvalidCredentialsError``.
        """
        account = self._repository.find_by_email(payload.email)
        if account is None:
            LOGINS.labels(outcome="invalid_credentials").inc()
            raise InvalidCredentialsError()
        if not account.is_active:
            LOGINS.labels(outcome="inactive").inc()
            raise InactiveAccountError()
        if not self._hasher.verify(payload.password, account.password_hash):
            LOGINS.labels(outcome="invalid_credentials").inc()
            raise InvalidCredentialsError()

        token = self._tokens.issue_user_token(account.id, account.email)
        self._cache.put(account.id, account.to_public())

        event = UserLoggedIn(user_id=account.id, email=account.email)
        self._publish(UserEventType.logged_in.value, event.model_dump(by_alias=True))

        LOGINS.labels(outcome="success").inc()
        logger.info("user logged in: %s", account.id)
        return AuthResult(token=token, user=account.summary())

    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        """Return the redacted view for ``user_id`` using the cache as read-through."""
        cached = self._cache.get(user_id)
        if cached is not None:
            logger.debug("user %s served from session cache", user_id)
            return cached

        account = self._repository.find_by_id(user_id)
        if account is None:
            return None
        view = account.to_public()
        self._cache.put(user_id, view)
        return view

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        return self.get_user_by_id(user_id)

    def get_profile_with_financial_data(self, user_id: str) -> dict[str, Any] | None:
        """Return the profile merged with wallet data fetched in parallel.

        Wallet data is optional: ``balance`` and ``transactions`` are ``None`` when the
        wallet cannot answer. Returns ``None`` when the user does not exist.
        """
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="financial") as pool:
            financial = pool.submit(self._wallet.get_financial_data, user_id)
            user = self.get_profile(user_id)
            wallet = financial.result()
        if user is None:
            return None
        return {"user": user, "wallet": wallet}

    def get_all_users(self) -> list[dict[str, Any]]:
        """Return every account, redacted, newest first; the cache is not consulted."""
        return [account.to_public() for account in self._repository.list_accounts()]

    def _publish(self, event_name: str, payload: dict[str, Any]) -> None:
        try:
            self._publisher.publish(event_name, payload)
        except DependencyUnavailableError as exc:
            SIDE_EFFECT_FAILURES.labels(kind="event_publish").inc()
            logger.error("dropping %s event for user %s: %s", event_name, payload.get("userId"), exc)
