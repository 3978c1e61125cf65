"""
Per-type conversion of Redis values into JSON-compatible Python objects.
Supports the five core data types: string, list, set, sorted set and hash.
"""

from enum import Enum


class UnsupportedTypeError(ValueError):
    """Raised when a key holds a type that has no JSON converter."""

    def __init__(self, key, type_name):
        self.key = key
        self.type_name = type_name
        super().__init__(f"Unsupported type '{type_name}' for key '{key}'")


class ValueType(Enum):
    NONE = "none"
    STRING = "string"
    LIST = "list"
    SET = "set"
    ZSET = "zset"
    HASH = "hash"

    @classmethod
    def parse(cls, type_name, key=None):
        """Map a TYPE reply to a member, raising UnsupportedTypeError otherwise."""
        if isinstance(type_name, bytes):
            type_name = type_name.decode('utf-8')
        try:
            return cls(type_name)
        except ValueError:
            raise UnsupportedTypeError(key, type_name) from None


async def export_string(client, key):
    # None when the key expired between TYPE and GET
    return await client.get(key)


async def export_list(client, key):
    return await client.lrange(key, 0, -1)


async def export_set(client, key):
    # SMEMBERS comes back as a Python set; sorted for stable output
    return sorted(await client.smembers(key))


async def export_sorted_set(client, key):
    members = await client.zrange(key, 0, -1, withscores=True)
    return [{"score": float(score), "value": member} for member, score in members]


async def export_hash(client, key):
    return dict(await client.hgetall(key))


CONVERTERS = {
    ValueType.STRING: export_string,
    ValueType.LIST: export_list,
    ValueType.SET: export_set,
    ValueType.ZSET: export_sorted_set,
    ValueType.HASH: export_hash,
}

_missing = [t for t in ValueType if t is not ValueType.NONE and t not in CONVERTERS]
if _missing:
    raise RuntimeError(f"No converter registered for {', '.join(t.value for t in _missing)}")


async def convert(client, key, value_type):
    """Fetch the value of ``key`` and return its exported form."""
    try:
        converter = CONVERTERS[value_type]
    except KeyError:
        raise UnsupportedTypeError(key, getattr(value_type, 'value', value_type)) from None
    return await converter(client, key)
