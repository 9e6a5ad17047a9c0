"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class SyncUnavailableError(DomainError):
    """Remote operation attempted while offline or uninitialized."""


class StorageFatalError(RuntimeError):
    """The local store could not be opened. The session cannot continue."""


class RemoteStoreError(RuntimeError):
    """A remote store operation failed."""


def debtor_not_found(debtor_id: str) -> str:
    """Return message for missing debtor."""
    return f"Debtor {debtor_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def backup_not_found(backup_id: str) -> str:
    """Return message for missing remote backup."""
    return f"Backup {backup_id} not found"


def unknown_fields(entity: str, fields: set[str]) -> str:
    """Return message for update fields an entity does not have."""
    return f"Cannot update {entity}: unknown field{'s' if len(fields) != 1 else ''} {', '.join(sorted(fields))}"


def invalid_transaction_type(value: object) -> str:
    """Return message for a transaction type outside debt/payment."""
    return f"Invalid transaction type '{value}'. Expected 'debt' or 'payment'"
