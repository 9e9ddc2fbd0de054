import logging

from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from ..constants import SHORT_CODE_MAX_ATTEMPTS
from ..exceptions import InvalidInput, StorageUnavailable

logger = logging.getLogger(__name__)


class StoreComponent:
    """
    Base for the inventory components.

    Each component talks to exactly one database alias, handed in at
    construction, and keeps no other state between calls.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def atomic(self):
        return transaction.atomic(using=self.using)

    def validate(self, instance, exclude=None):
        try:
            instance.full_clean(exclude=exclude, validate_unique=False, validate_constraints=False)
        except ValidationError as exc:
            raise InvalidInput.from_validation_error(exc) from exc

    def insert_with_unique_code(self, build, attempts: int = SHORT_CODE_MAX_ATTEMPTS):
        """
        Insert the instance returned by ``build()``.

        ``build`` must draw a fresh random short code every time it is called.
        Each attempt runs in its own savepoint, so a collision only rolls back
        that attempt and the surrounding transaction stays usable.
        """
        for attempt in range(1, attempts + 1):
            instance = build()
            try:
                with self.atomic():
                    instance.save(using=self.using, force_insert=True)
                return instance
            except IntegrityError:
                logger.warning(
                    f"Short code collision for {type(instance).__name__} "
                    f"{instance.short_code!r} (attempt {attempt}/{attempts})"
                )
        raise StorageUnavailable("Could not allocate a unique short code.")
