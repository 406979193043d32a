"""Settings gateway: one settings row per owner."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from questlist.core import db_client
from questlist.core.config import constants
from questlist.core.db_client import DatabaseError
from questlist.core.errors import ConflictError, PersistenceError
from questlist.core.logging import log_with_user_context, span
from questlist.domain.user_settings import ClaimRecord, UserSettings


logger = logging.getLogger(__name__)

COLLECTION = "settings"


def default_settings(owner_id: str) -> UserSettings:
    """Settings for a user who has never logged in before."""
    return UserSettings(owner_id=owner_id, daily_goal_xp=constants.DEFAULT_DAILY_GOAL_XP, bonus_xp=0, claimed={})


async def _get_record(owner_id: str) -> dict[str, Any]:
    try:
        record = await db_client.get_first_record(collection=COLLECTION, where={"owner_id": owner_id})
    except DatabaseError as e:
        raise PersistenceError(str(e), operation="get_settings") from e
    if record is None:
        msg = f"Settings not found for owner {owner_id}"
        raise PersistenceError(msg, operation="get_settings")
    return record


async def get_settings(*, owner_id: str) -> UserSettings:
    """Load the settings row of ``owner_id``.

    Raises:
        PersistenceError: If the row is missing, malformed, or the read fails
    """
    with span("settings_service.get_settings"):
        record = await _get_record(owner_id)
        try:
            return UserSettings.model_validate(record)
        except PydanticValidationError as e:
            msg = f"Malformed settings for owner {owner_id}: {e}"
            raise PersistenceError(msg, operation="get_settings") from e


async def upsert_settings(*, owner_id: str, defaults: UserSettings | None = None) -> bool:
    """Create the settings row with ``defaults`` unless it already exists.

    An existing row is never overwritten.

    Returns:
        True if a new row was created

    Raises:
        PersistenceError: If the write fails
    """
    with span("settings_service.upsert_settings"):
        defaults = defaults or default_settings(owner_id)
        data = {
            "owner_id": owner_id,
            "daily_goal_xp": defaults.daily_goal_xp,
            "bonus_xp": defaults.bonus_xp,
            "claimed": defaults.claimed_payload(),
        }
        try:
            created = await db_client.insert_record_if_absent(
                collection=COLLECTION, data=data, conflict_field="owner_id"
            )
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="upsert_settings") from e

        if created:
            log_with_user_context(logger, "info", "Created settings row", owner_id=owner_id)
        return created


async def update_settings(*, owner_id: str, patch: dict[str, Any]) -> None:
    """Apply ``patch`` to the settings row of ``owner_id``.

    Raises:
        PersistenceError: If the row is missing or the write fails
    """
    with span("settings_service.update_settings"):
        record = await _get_record(owner_id)
        try:
            await db_client.update_record(collection=COLLECTION, record_id=record["id"], data=patch)
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="update_settings") from e
        log_with_user_context(logger, "info", "Updated settings", owner_id=owner_id, fields=sorted(patch))


async def record_claim(*, owner_id: str, claim_key: str, claim: ClaimRecord) -> None:
    """Persist one claim, but only if ``claim_key`` is still absent from the stored row.

    Adds the claim record and its XP to the stored values in one conditional
    write, so two sessions racing on the same key cannot both be paid and
    claims of different keys never overwrite each other.

    Raises:
        ConflictError: If the stored row already contains ``claim_key``
        PersistenceError: If the row is missing or the write fails
    """
    with span("settings_service.record_claim"):
        record = await _get_record(owner_id)
        awarded = claim.base_reward_xp + claim.bonus_xp
        try:
            updated = await db_client.set_json_key_if_absent(
                collection=COLLECTION,
                record_id=record["id"],
                json_field="claimed",
                key=claim_key,
                value=claim.model_dump(mode="json"),
                increments={"bonus_xp": awarded},
            )
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="record_claim") from e

        if not updated:
            log_with_user_context(logger, "warning", "Claim already stored", owner_id=owner_id, claim_key=claim_key)
            raise ConflictError(claim_key)
        log_with_user_context(
            logger, "info", "Claim stored", owner_id=owner_id, claim_key=claim_key, awarded_xp=awarded
        )
