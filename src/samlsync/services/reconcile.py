"""Reconciliation of SAML assertions with local accounts."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import Config
from ..exceptions import (
    AccountBlockedError,
    ReconciliationError,
    UserDoesNotExistError,
    UsernameMismatchError,
)
from ..models.account import LocalAccount
from ..models.attributes import AttributeBag, ValidatedAttributes
from ..models.result import (
    Authenticated,
    NotAuthenticated,
    ReconciliationResult,
    Rejected,
)
from ..providers.base import AssertionService
from ..storage.base import UserDirectory
from ..util import unusable_password
from .attributes import AttributeExtractor
from .groups import GroupMembershipEvaluator

__all__ = ["ReconciliationService"]


class ReconciliationService:
    """Log in, create, or update a local account from a SAML assertion.

    Reconciliation runs once per request in a fixed order: extract and
    validate the identity attributes, find or create the local account,
    synchronize its real name and email, compute its groups, and then persist
    it, at most once. The service holds no state between calls, so one
    instance may serve concurrent requests as long as each has its own user
    directory session.

    Parameters
    ----------
    config
        samlsync configuration.
    directory
        Local user directory.
    extractor
        Extractor for the identity attributes.
    evaluator
        Evaluator for group membership rules.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: Config,
        directory: UserDirectory,
        extractor: AttributeExtractor,
        evaluator: GroupMembershipEvaluator,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._directory = directory
        self._extractor = extractor
        self._evaluator = evaluator
        self._logger = logger

    async def reconcile(
        self, assertion: AssertionService
    ) -> ReconciliationResult:
        """Reconcile the assertion of the current request, if any.

        Parameters
        ----------
        assertion
            Assertion service for the current request.

        Returns
        -------
        ReconciliationResult
            `~samlsync.models.result.NotAuthenticated` if there is no
            assertion, `~samlsync.models.result.Rejected` if the assertion
            cannot be reconciled, and otherwise
            `~samlsync.models.result.Authenticated` with the account.

        Raises
        ------
        AssertionServiceError
            Raised if the assertion service failed.
        DirectoryError
            Raised if the user directory failed.
        """
        if not await assertion.is_authenticated():
            return NotAuthenticated()
        attributes = await assertion.get_attributes()
        return await self.reconcile_attributes(attributes)

    async def reconcile_attributes(
        self, attributes: AttributeBag
    ) -> ReconciliationResult:
        """Reconcile a set of assertion attributes with the user directory.

        Parameters
        ----------
        attributes
            Attributes from an authenticated assertion.

        Returns
        -------
        ReconciliationResult
            `~samlsync.models.result.Rejected` if the attributes cannot be
            reconciled, otherwise `~samlsync.models.result.Authenticated`
            with the account.

        Raises
        ------
        DirectoryError
            Raised if the user directory failed.
        """
        try:
            return await self._reconcile(attributes)
        except ReconciliationError as e:
            self._logger.warning(
                "Rejected SAML assertion", reason=e.reason.value, error=str(e)
            )
            return Rejected(reason=e.reason, message=str(e))

    async def _reconcile(self, attributes: AttributeBag) -> Authenticated:
        validated = self._extractor.extract(attributes)
        logger = self._logger.bind(user=validated.username)
        account = await self._resolve(validated)
        changed = self._sync_profile(account, validated)
        if self._evaluator.apply(account, attributes):
            changed = True

        if account.is_new:
            await self._directory.create(account)
            logger.info("Created user from SAML assertion", id=account.id)
            return Authenticated(account=account, created=True, changed=True)
        if changed:
            await self._directory.save(account)
        logger.info("User logged in from SAML", changed=changed)
        return Authenticated(account=account, changed=changed)

    async def _resolve(self, validated: ValidatedAttributes) -> LocalAccount:
        """Find the account for a username, or prepare a new one.

        New accounts are not stored here, so that they are created with
        their profile and groups already set.
        """
        username = validated.username
        account_id = await self._directory.find_by_name(username)
        if account_id is None:
            if not self._config.create_users_automatically:
                msg = (
                    f"User {username} does not exist and automatic creation"
                    " is disabled"
                )
                raise UserDoesNotExistError(msg)
            password = unusable_password()
            return LocalAccount(username=username, password=password)

        account = await self._directory.load(account_id)
        if account.username.casefold() != username.casefold():
            msg = f"Directory returned user {account.username} for {username}"
            raise UsernameMismatchError(msg)
        if account.blocked and self._config.block_disables_login:
            raise AccountBlockedError(f"User {account.username} is blocked")
        return account

    def _sync_profile(
        self, account: LocalAccount, validated: ValidatedAttributes
    ) -> bool:
        """Update the real name and email of an account.

        An email address that is already confirmed is left alone if it
        matches. If synchronized addresses are confirmed automatically, an
        unconfirmed address is synchronized again until it is confirmed.
        """
        updated: list[str] = []
        realname = validated.realname
        if realname is not None and account.real_name != realname:
            account.real_name = realname
            updated.append("real_name")

        mail = validated.mail
        confirm = self._config.confirm_synced_email
        stale = confirm and not account.email_confirmed
        if mail is not None and (account.email != mail or stale):
            if account.email != mail:
                account.email_confirmed = False
            account.email = mail
            if confirm:
                account.email_confirmed = True
            updated.append("email")

        if updated and not account.is_new:
            self._logger.info(
                "Updated user profile from SAML assertion",
                user=account.username,
                fields=updated,
            )
        return bool(updated)
