import logging
from collections import deque
from typing import Iterable, List, Optional

from app_errors import InvalidRequest, PrimaryNotFound
from contact_store import ContactStore
from db_models import PRIMARY, SECONDARY, Contact, ContactResponse, FinalResponse

logger = logging.getLogger(__name__)

MERGE_EMAIL_SIDE = "email_side"
MERGE_OLDEST_PRIMARY = "oldest_primary"
MERGE_POLICIES = (MERGE_EMAIL_SIDE, MERGE_OLDEST_PRIMARY)


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


class IdentityResolver:
    """Links contacts sharing an email or phone number into primary/secondary chains.

    ``merge_policy`` decides which chain survives when a request joins two
    chains: ``email_side`` always folds the phone-matched contact under the
    email-matched root, ``oldest_primary`` keeps whichever root was created
    first.
    """

    def __init__(self, store: ContactStore, merge_policy: str = MERGE_EMAIL_SIDE):
        if merge_policy not in MERGE_POLICIES:
            raise ValueError(f"Unknown merge policy: {merge_policy}")
        self.store = store
        self.merge_policy = merge_policy

    def identify(self, email: Optional[str] = None, phone: Optional[str] = None) -> FinalResponse:
        contact = self.resolve(email, phone)
        return self.build_response(contact)

    def resolve(self, email: Optional[str] = None, phone: Optional[str] = None) -> Contact:
        """Return the contact that represents the request, writing if needed.

        The result may be a primary or a secondary; pass it to
        ``build_response`` for the consolidated view.
        """
        if not email and not phone:
            raise InvalidRequest("Either email or phoneNumber must be provided")

        if email and phone:
            return self._resolve_pair(email, phone)

        if phone:
            matches = self.store.find_by_phone(phone)
        else:
            matches = self.store.find_by_email(email)

        if matches:
            return matches[0]
        return self._create_primary(email or None, phone or None)

    def _resolve_pair(self, email: str, phone: str) -> Contact:
        for contact in self.store.find_by_phone_and_email(phone, email):
            if contact.email == email and contact.phoneNumber == phone:
                logger.debug("Exact match on contact %s, nothing to write", contact.id)
                return contact

        contacts_by_phone = self.store.find_by_phone(phone)
        contacts_by_email = self.store.find_by_email(email)

        if contacts_by_phone and contacts_by_email:
            return self._link_chains(contacts_by_phone[0], contacts_by_email[0])
        if contacts_by_phone:
            return self._create_secondary(email, contacts_by_phone[0].phoneNumber, contacts_by_phone[0])
        if contacts_by_email:
            return self._create_secondary(contacts_by_email[0].email, phone, contacts_by_email[0])
        return self._create_primary(email, phone)

    def root_of(self, contact: Contact) -> Contact:
        """Follow linkedId until a primary contact is reached."""
        visited = set()
        while contact.is_secondary:
            visited.add(contact.id)
            linked_id = contact.linkedId
            if linked_id is None or linked_id in visited:
                raise PrimaryNotFound(contact.id, linked_id)
            parent = self.store.find_by_id(linked_id)
            if parent is None:
                raise PrimaryNotFound(contact.id, linked_id)
            contact = parent
        return contact

    def _link_chains(self, phone_match: Contact, email_match: Contact) -> Contact:
        phone_root = self.root_of(phone_match)
        email_root = self.root_of(email_match)

        if phone_root.id == email_root.id:
            logger.debug("Contacts %s and %s already share primary %s", phone_match.id, email_match.id, email_root.id)
            return phone_match

        if self.merge_policy == MERGE_OLDEST_PRIMARY:
            survivor, demoted = sorted((phone_root, email_root), key=lambda c: (c.createdAt, c.id))
            updated = self._demote(demoted, survivor)
            return updated if updated.id == phone_match.id else phone_match

        return self._demote(phone_match, email_root)

    def _demote(self, contact: Contact, primary: Contact) -> Contact:
        logger.info("Linking contact %s under primary %s", contact.id, primary.id)
        return self.store.update_by_id(contact.id, linkPrecedence=SECONDARY, linkedId=primary.id)

    def _create_secondary(self, email: str, phone: str, match: Contact) -> Contact:
        primary = self.root_of(match)
        contact = self.store.insert(email=email, phoneNumber=phone, linkPrecedence=SECONDARY, linkedId=primary.id)
        logger.info("Created secondary contact %s under primary %s", contact.id, primary.id)
        return contact

    def _create_primary(self, email: Optional[str], phone: Optional[str]) -> Contact:
        contact = self.store.insert(email=email, phoneNumber=phone, linkPrecedence=PRIMARY)
        logger.info("Created primary contact %s", contact.id)
        return contact

    def collect_secondaries(self, primary: Contact) -> List[Contact]:
        # direct secondaries first, then members still pointing at a demoted primary
        collected = []
        seen = {primary.id}
        pending = deque([primary.id])
        while pending:
            for contact in self.store.find_secondaries_of(pending.popleft()):
                if contact.id in seen:
                    continue
                seen.add(contact.id)
                collected.append(contact)
                pending.append(contact.id)
        return collected

    def build_response(self, contact: Contact) -> FinalResponse:
        primary = self.root_of(contact)
        secondaries = self.collect_secondaries(primary)

        return FinalResponse(
            contact=ContactResponse(
                primaryContactId=primary.id,
                emails=_distinct([primary.email] + [c.email for c in secondaries]),
                phoneNumbers=_distinct([primary.phoneNumber] + [c.phoneNumber for c in secondaries]),
                secondaryContactIds=[c.id for c in secondaries],
            )
        )
