"""Tag reconciliation helpers.

Tags are an unordered string mapping on the declared side and a list of
ResourceTag on the provider side. Changing a value is a delete of the old
pair followed by a create of the new one.
"""

from __future__ import annotations

from typing import Any

from .commands import Command, CreateTags, DeleteTags
from .remote import ResourceTag
from .state import ResourceState


def _tag_list(tags: dict[str, str]) -> list[ResourceTag]:
    return [ResourceTag(key=key, value=value) for key, value in sorted(tags.items())]


def create_tags(
    state: ResourceState[Any], resource_type: str, key: str = "tags"
) -> CreateTags | None:
    """Build the command attaching the declared tags to a new resource.

    Returns:
        CreateTags, or None when no tags are declared.
    """
    tags: dict[str, str] = getattr(state.config, key) or {}
    if not tags:
        return None
    return CreateTags(resource_ids=[state.id], resource_type=resource_type, tags=_tag_list(tags))


def update_tags(
    state: ResourceState[Any], resource_type: str, key: str = "tags"
) -> list[Command]:
    """Build the commands converging remote tags to the declared ones.

    Returns:
        DeleteTags for removed or changed pairs, then CreateTags for added or
        changed pairs. Empty when nothing changed.
    """
    if not state.has_change(key):
        return []

    old: dict[str, str] = state.previous(key) or {}
    new: dict[str, str] = getattr(state.config, key) or {}

    to_remove = {k: v for k, v in old.items() if new.get(k) != v}
    to_add = {k: v for k, v in new.items() if old.get(k) != v}

    commands: list[Command] = []
    if to_remove:
        commands.append(
            DeleteTags(
                resource_ids=[state.id], resource_type=resource_type, tags=_tag_list(to_remove)
            )
        )
    if to_add:
        commands.append(
            CreateTags(resource_ids=[state.id], resource_type=resource_type, tags=_tag_list(to_add))
        )
    return commands


def tags_after(tags: dict[str, str] | None, command: Command) -> dict[str, str]:
    """Remote tags once command has been applied on top of tags."""
    result = dict(tags or {})
    if isinstance(command, DeleteTags):
        for tag in command.tags:
            result.pop(tag.key, None)
    elif isinstance(command, CreateTags):
        result.update({tag.key: tag.value for tag in command.tags})
    return result
