from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping

# Mapping-level edits. Every call returns a new dict; the input is left alone.


def rename_entry(
    items: Mapping[str, str], old_key: str, new_key: str, value: str
) -> dict[str, str]:
    out = dict(items)
    if old_key != new_key:
        out.pop(old_key, None)
    # An existing new_key is overwritten, last write wins.
    out[new_key] = value
    return out


def update_value(items: Mapping[str, str], key: str, value: str) -> dict[str, str]:
    return rename_entry(items, key, key, value)


def add_placeholder(items: Mapping[str, str]) -> dict[str, str]:
    # Only one "" row can exist, a second add is absorbed by the first.
    out = dict(items)
    out[""] = ""
    return out


def remove_entry(items: Mapping[str, str], key: str) -> dict[str, str]:
    out = dict(items)
    out.pop(key, None)
    return out


class DuplicateKeyError(ValueError):
    def __init__(self, keys: list[str]) -> None:
        self.keys = keys
        super().__init__(f"Duplicate keys: {', '.join(repr(k) for k in keys)}")


class BlankKeyError(ValueError):
    pass


@dataclass(frozen=True)
class Row:
    row_id: int
    key: str = ""
    value: str = ""


@dataclass(frozen=True)
class KeyValueRows:
    """Editable rows for a string map, addressed by a synthetic row id.

    Rows may share keys or all be blank while editing; conflicts only
    matter once the rows are turned back into a mapping.
    """

    rows: tuple[Row, ...] = ()
    next_id: int = 1

    @classmethod
    def from_mapping(cls, items: Mapping[str, str] | None) -> KeyValueRows:
        state = cls()
        for key, value in (items or {}).items():
            state = state.add(key, value)
        return state

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> KeyValueRows:
        state = cls()
        for key, value in pairs:
            state = state.add(key, value)
        return state

    def add(self, key: str = "", value: str = "") -> KeyValueRows:
        row = Row(row_id=self.next_id, key=key, value=value)
        return KeyValueRows(rows=self.rows + (row,), next_id=self.next_id + 1)

    def _edit(self, row_id: int, **changes: str) -> KeyValueRows:
        if not any(r.row_id == row_id for r in self.rows):
            raise KeyError(row_id)
        rows = tuple(
            replace(r, **changes) if r.row_id == row_id else r for r in self.rows
        )
        return replace(self, rows=rows)

    def rename(self, row_id: int, new_key: str) -> KeyValueRows:
        return self._edit(row_id, key=new_key)

    def set_value(self, row_id: int, value: str) -> KeyValueRows:
        return self._edit(row_id, value=value)

    def remove(self, row_id: int) -> KeyValueRows:
        return replace(self, rows=tuple(r for r in self.rows if r.row_id != row_id))

    def duplicate_keys(self) -> list[str]:
        seen: set[str] = set()
        dupes: list[str] = []
        for r in self.rows:
            key = r.key.strip()
            if not key:
                continue
            if key in seen and key not in dupes:
                dupes.append(key)
            seen.add(key)
        return dupes

    def to_mapping(self) -> dict[str, str]:
        """Serialize rows; blank rows are dropped, conflicts are raised."""
        out: dict[str, str] = {}
        for r in self.rows:
            key = r.key.strip()
            if not key:
                if r.value:
                    raise BlankKeyError(f"Value {r.value!r} has no key")
                continue
            out[key] = r.value
        dupes = self.duplicate_keys()
        if dupes:
            raise DuplicateKeyError(dupes)
        return out

    def pairs(self) -> list[dict[str, object]]:
        return [{"row_id": r.row_id, "key": r.key, "value": r.value} for r in self.rows]
