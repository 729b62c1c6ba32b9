import enum

from app.services.errors import InvalidAccessLevel


class AccessLevel(enum.IntEnum):
    GUEST = 10
    REPORTER = 20
    DEVELOPER = 30
    MASTER = 40
    OWNER = 50

    @classmethod
    def parse(cls, value) -> "AccessLevel":
        """
        Return the level for *value* (int, numeric string or AccessLevel).
        Anything outside the enumeration raises InvalidAccessLevel.
        """
        # bool is an int subclass; True must not read as a level
        if value is None or isinstance(value, bool):
            raise InvalidAccessLevel()
        if isinstance(value, str):
            value = value.strip()
            if not value.lstrip("-").isdigit():
                raise InvalidAccessLevel(f"Unknown access level {value!r}.")
            value = int(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidAccessLevel(f"Unknown access level {value!r}.") from None

    @classmethod
    def options(cls) -> dict[str, int]:
        return {level.name.capitalize(): level.value for level in cls}


# Minimum level needed to manage other members of a group.
MANAGE_THRESHOLD = AccessLevel.MASTER
