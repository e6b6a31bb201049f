class ContactResolutionError(Exception):
    """Base class for failures surfaced by the identify flow."""


class InvalidRequest(ContactResolutionError):
    pass


class PrimaryNotFound(ContactResolutionError):
    """A secondary's linkedId does not lead to an active primary contact."""

    def __init__(self, contact_id, linked_id):
        self.contact_id = contact_id
        self.linked_id = linked_id
        super().__init__(
            f"Primary contact not found for contact {contact_id} (linkedId={linked_id})"
        )


class StoreError(ContactResolutionError):
    pass
