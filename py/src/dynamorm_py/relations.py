"""Guards for dependent items that are set once and never change.

A dependent item (for example a row that reserves a unique username for a
user) is written alongside its owner. Whether it is being claimed for the
first time or re-attested depends on the owner as it was loaded versus the
owner as it is about to be saved; :func:`classify_dependent` compares those
two snapshots and :func:`dependent_guard` turns the result into the guard the
dependent item must carry.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from boto3.dynamodb.conditions import Attr

from .condition import Condition, all_of
from .errors import ImmutableFieldChangedError


class DependentState(Enum):
    ABSENT = "absent"
    NEW = "new"
    UNCHANGED = "unchanged"


def _is_unset(value: Any) -> bool:
    return value is None or value == ""


def classify_dependent(field: str, loaded: Any, saving: Any) -> DependentState:
    if _is_unset(saving):
        if not _is_unset(loaded):
            raise ImmutableFieldChangedError(field=field, loaded=loaded, saving=saving)
        return DependentState.ABSENT
    if _is_unset(loaded):
        return DependentState.NEW
    if loaded != saving:
        raise ImmutableFieldChangedError(field=field, loaded=loaded, saving=saving)
    return DependentState.UNCHANGED


def guard_unclaimed(key_attributes: Sequence[str]) -> Condition:
    # A dependent item that does not exist cannot belong to anyone yet.
    return Condition.build(all_of([Attr(name).not_exists() for name in key_attributes]))


def guard_owned_by(key_attributes: Sequence[str], owner_attribute: str, owner: Any) -> Condition:
    return Condition.build(
        all_of([*(Attr(name).exists() for name in key_attributes), Attr(owner_attribute).eq(owner)])
    )


def dependent_guard(
    state: DependentState,
    *,
    key_attributes: Sequence[str],
    owner_attribute: str,
    owner: Any,
) -> Condition | None:
    if state is DependentState.NEW:
        return guard_unclaimed(key_attributes)
    if state is DependentState.UNCHANGED:
        return guard_owned_by(key_attributes, owner_attribute, owner)
    return None
