"""Send workflow: pick recipients, email the letter, record the history."""

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lettertrack.enums import DispatchStatus, LetterStatus
from lettertrack.exceptions import DispatchError, InvalidRecipientsError, MailNotConfiguredError
from lettertrack.models import Bureau, Letter, LetterDispatch
from lettertrack.services.mail import MailRelay, compose_letter_email
from lettertrack.utils import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """Result of one send request across all selected recipients."""

    letter_status: str
    dispatches: list[LetterDispatch] = field(default_factory=list)

    @property
    def sent(self) -> list[LetterDispatch]:
        return [d for d in self.dispatches if d.status == DispatchStatus.SENT]

    @property
    def failed(self) -> list[LetterDispatch]:
        return [d for d in self.dispatches if d.status == DispatchStatus.FAILED]


def _dedupe(emails: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for email in emails:
        seen.setdefault(normalize_email(email), None)
    return list(seen)


async def resolve_recipients(
    db: AsyncSession,
    letter: Letter,
    bureau_id: uuid.UUID | None = None,
    recipients: list[str] | None = None,
) -> tuple[Bureau | None, list[str]]:
    """
    Work out who receives the letter.

    With a bureau, ``recipients`` narrows the bureau's members and every
    selected address must be a member. Without a bureau, ``recipients`` is
    used as given. With neither, the letter's own ``receiver_email`` is used.

    Raises:
        InvalidRecipientsError: Unknown bureau, non-member selection,
            malformed address, or nobody to send to
    """
    bureau = None
    if bureau_id is not None:
        result = await db.execute(select(Bureau).where(Bureau.id == bureau_id))
        bureau = result.scalar_one_or_none()
        if bureau is None:
            raise InvalidRecipientsError("Bureau not found")

        members = _dedupe(bureau.members or [])
        if recipients:
            selected = _dedupe(recipients)
            outsiders = [email for email in selected if email not in members]
            if outsiders:
                raise InvalidRecipientsError(
                    f"Not members of bureau {bureau.name}: {', '.join(outsiders)}"
                )
            emails = selected
        else:
            emails = members
    elif recipients:
        emails = _dedupe(recipients)
    elif letter.receiver_email:
        emails = [normalize_email(letter.receiver_email)]
    else:
        emails = []

    if not emails:
        raise InvalidRecipientsError("No recipients selected")

    invalid = [email for email in emails if not is_valid_email(email)]
    if invalid:
        raise InvalidRecipientsError(f"Invalid email address: {', '.join(invalid)}")

    return bureau, emails


async def send_letter(
    db: AsyncSession,
    letter: Letter,
    relay: MailRelay,
    bureau_id: uuid.UUID | None = None,
    recipients: list[str] | None = None,
    subject: str | None = None,
    message: str | None = None,
    sent_by: str | None = None,
) -> DispatchOutcome:
    """
    Email a letter to the selected recipients and record one history row each.

    A failure for one recipient is recorded and does not stop the others.
    The letter becomes SENT once at least one email went out.

    Raises:
        InvalidRecipientsError: If the recipient selection is unusable
        MailNotConfiguredError: If no mail relay is configured
    """
    bureau, emails = await resolve_recipients(db, letter, bureau_id, recipients)
    if not relay.is_configured:
        raise MailNotConfiguredError("MAIL_RELAY_URL is not configured")

    outcome = DispatchOutcome(letter_status=letter.status)
    for email_address in emails:
        email = compose_letter_email(letter, to=email_address, message=message, subject=subject)
        dispatch = LetterDispatch(
            letter_id=letter.id,
            bureau_id=bureau.id if bureau else None,
            recipient_email=email_address,
            subject=email.subject,
            sent_by=sent_by,
        )
        try:
            dispatch.relay_message_id = await relay.send(email)
            dispatch.status = DispatchStatus.SENT
        except DispatchError as e:
            logger.error(f"Failed to send letter {letter.id} to {email_address}: {e}")
            dispatch.status = DispatchStatus.FAILED
            dispatch.error_message = str(e)

        db.add(dispatch)
        outcome.dispatches.append(dispatch)

    if outcome.sent:
        letter.status = LetterStatus.SENT
    outcome.letter_status = letter.status
    await db.flush()

    logger.info(
        f"Letter {letter.id} dispatched: {len(outcome.sent)} sent, {len(outcome.failed)} failed"
    )
    return outcome
