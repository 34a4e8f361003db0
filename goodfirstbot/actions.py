"""Callback actions carried by keyboard buttons, and label colour helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

ActionArg = Union[str, int]


class ActionKind(str, Enum):
    """The kinds of callback action, with their wire names."""

    CMD_HELP = "cmd-help"
    CMD_OVERVIEW = "cmd-overview"
    CMD_LIST = "cmd-list"
    CMD_ADD = "cmd-add"
    VIEW_REPO_DETAILS = "view-repo-details"
    VIEW_REPO_LABELS = "view-repo-labels"
    REMOVE_REPO_PROMPT = "remove-repo-prompt"
    TOGGLE_LABEL = "toggle-label"
    LIST_REPOS_PAGE = "list-repos-page"
    BACK_TO_REPO_LIST = "back-to-repo-list"
    BACK_TO_REPO_DETAILS = "back-to-repo-details"


_ARITY = {
    ActionKind.CMD_HELP: 0,
    ActionKind.CMD_OVERVIEW: 0,
    ActionKind.CMD_LIST: 0,
    ActionKind.CMD_ADD: 0,
    ActionKind.VIEW_REPO_DETAILS: 2,
    ActionKind.VIEW_REPO_LABELS: 3,
    ActionKind.REMOVE_REPO_PROMPT: 1,
    ActionKind.TOGGLE_LABEL: 3,
    ActionKind.LIST_REPOS_PAGE: 1,
    ActionKind.BACK_TO_REPO_LIST: 1,
    ActionKind.BACK_TO_REPO_DETAILS: 2,
}


@dataclass(frozen=True)
class CallbackAction:
    """An action attached to an inline keyboard button."""

    kind: ActionKind
    args: tuple[ActionArg, ...] = ()

    def __post_init__(self) -> None:
        expected = _ARITY[self.kind]
        if len(self.args) != expected:
            raise ValueError(
                f"{self.kind.value} takes {expected} argument(s), got {len(self.args)}"
            )

    @classmethod
    def cmd_help(cls) -> CallbackAction:
        return cls(ActionKind.CMD_HELP)

    @classmethod
    def cmd_overview(cls) -> CallbackAction:
        return cls(ActionKind.CMD_OVERVIEW)

    @classmethod
    def cmd_list(cls) -> CallbackAction:
        return cls(ActionKind.CMD_LIST)

    @classmethod
    def cmd_add(cls) -> CallbackAction:
        return cls(ActionKind.CMD_ADD)

    @classmethod
    def view_repo_details(cls, repo_id: str, from_page: int) -> CallbackAction:
        return cls(ActionKind.VIEW_REPO_DETAILS, (repo_id, from_page))

    @classmethod
    def view_repo_labels(cls, repo_id: str, page: int, from_page: int) -> CallbackAction:
        return cls(ActionKind.VIEW_REPO_LABELS, (repo_id, page, from_page))

    @classmethod
    def remove_repo_prompt(cls, repo_id: str) -> CallbackAction:
        return cls(ActionKind.REMOVE_REPO_PROMPT, (repo_id,))

    @classmethod
    def toggle_label(cls, label: str, page: int, from_page: int) -> CallbackAction:
        return cls(ActionKind.TOGGLE_LABEL, (label, page, from_page))

    @classmethod
    def list_repos_page(cls, page: int) -> CallbackAction:
        return cls(ActionKind.LIST_REPOS_PAGE, (page,))

    @classmethod
    def back_to_repo_list(cls, page: int) -> CallbackAction:
        return cls(ActionKind.BACK_TO_REPO_LIST, (page,))

    @classmethod
    def back_to_repo_details(cls, repo_id: str, from_page: int) -> CallbackAction:
        return cls(ActionKind.BACK_TO_REPO_DETAILS, (repo_id, from_page))

    def _json_value(self) -> Any:
        if not self.args:
            return self.kind.value
        if len(self.args) == 1:
            return {self.kind.value: self.args[0]}
        return {self.kind.value: list(self.args)}


_COLOR_GROUPS = {
    "\U0001f534": ("b60205", "d73a4a", "e99695", "f9d0c4", "ffc0cb", "d0312d"),
    "\U0001f7e0": ("f29513", "f8c99c", "fb6a06", "d93f0b", "ff8c00", "ffaf1c"),
    "\U0001f7e1": ("fef2c0", "fbca04", "e4e669", "ffeb3b", "f9e076", "fadc73"),
    "\U0001f7e2": (
        "0e8a16", "006b75", "5ab302", "a2eeef", "008672", "c2e0c6", "1aa34a", "4caf50",
    ),
    "\U0001f535": ("0052cc", "c5def5", "0075ca", "1d76db", "89d2fc", "00bcd4", "b3f4f4"),
    "\U0001f7e3": ("5319e7", "d4c5f9", "612d6d", "7057ff", "d876e3", "8e44ad", "bf55ec"),
    "\U0001f7e4": ("8b572a", "c4a661", "bf8c60"),
    "\u26ab\ufe0f": ("24292e", "000000", "1c1e21", "333333", "444444"),
}

_COLOR_TO_EMOJI = {
    color: emoji for emoji, colors in _COLOR_GROUPS.items() for color in colors
}

_DEFAULT_EMOJI = "\u26aa\ufe0f"


def github_color_to_emoji(hex_color: str) -> str:
    """Map a GitHub label colour (hex, no ``#``) to a coloured-circle emoji."""
    return _COLOR_TO_EMOJI.get(hex_color.lower(), _DEFAULT_EMOJI)


def serialize_action(action: CallbackAction) -> str:
    """Serialize an action to the compact JSON carried as button callback data."""
    return json.dumps(action._json_value(), separators=(",", ":"), ensure_ascii=False)