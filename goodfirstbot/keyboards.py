"""Inline keyboards for browsing repositories and managing their labels."""

from __future__ import annotations

from dataclasses import dataclass, field

from goodfirstbot.actions import CallbackAction, github_color_to_emoji, serialize_action
from goodfirstbot.pagination import Paginated
from goodfirstbot.repo_entity import RepoEntity

PREVIOUS_TEXT = "◀️ Previous"
NEXT_TEXT = "Next ▶️"


@dataclass(frozen=True)
class InlineKeyboardButton:
    """A button that sends ``callback_data`` back to the bot when pressed."""

    text: str
    callback_data: str

    @classmethod
    def callback(cls, text: str, action: CallbackAction) -> InlineKeyboardButton:
        """Build a button carrying the serialized ``action``."""
        return cls(text=text, callback_data=serialize_action(action))


@dataclass
class InlineKeyboardMarkup:
    """Rows of inline buttons attached to a message."""

    inline_keyboard: list[list[InlineKeyboardButton]] = field(default_factory=list)


@dataclass(frozen=True)
class LabelNormalized:
    """A repository label with its colour, issue count and whether it is tracked."""

    name: str
    color: str
    count: int
    is_selected: bool


def _nav_row(
    paginated: Paginated, previous: CallbackAction | None, following: CallbackAction | None
) -> list[InlineKeyboardButton]:
    row = []
    if paginated.has_prev() and previous is not None:
        row.append(InlineKeyboardButton.callback(PREVIOUS_TEXT, previous))
    if paginated.has_next() and following is not None:
        row.append(InlineKeyboardButton.callback(NEXT_TEXT, following))
    return row


def build_repo_list_keyboard(paginated_repos: Paginated[RepoEntity]) -> InlineKeyboardMarkup:
    """One button per repository on the current page, plus page navigation."""
    page = paginated_repos.page
    rows = [
        [
            InlineKeyboardButton.callback(
                repo.name_with_owner,
                CallbackAction.view_repo_details(repo.name_with_owner, page),
            )
        ]
        for repo in paginated_repos.page_items()
    ]
    nav = _nav_row(
        paginated_repos,
        CallbackAction.list_repos_page(page - 1),
        CallbackAction.list_repos_page(page + 1),
    )
    if nav:
        rows.append(nav)
    return InlineKeyboardMarkup(rows)


def build_repo_item_keyboard(repo: RepoEntity, from_page: int) -> InlineKeyboardMarkup:
    """Buttons for a single repository: back to the list, labels, remove."""
    repo_id = repo.name_with_owner
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton.callback(
                    "🔙 Repository list", CallbackAction.back_to_repo_list(from_page)
                )
            ],
            [
                InlineKeyboardButton.callback(
                    "⚙️ Labels", CallbackAction.view_repo_labels(repo_id, 1, from_page)
                )
            ],
            [
                InlineKeyboardButton.callback(
                    "❌ Remove", CallbackAction.remove_repo_prompt(repo_id)
                )
            ],
        ]
    )


def _label_text(label: LabelNormalized) -> str:
    check = "✅ " if label.is_selected else ""
    return f"{check} {github_color_to_emoji(label.color)} {label.name}({label.count})"


def build_repo_labels_keyboard(
    paginated_labels: Paginated[LabelNormalized], repo_id: str, from_page: int
) -> InlineKeyboardMarkup:
    """Back buttons, one toggle button per label on the current page, and navigation."""
    page = paginated_labels.page
    rows = [
        [
            InlineKeyboardButton.callback(
                "🔙 Back to repository",
                CallbackAction.back_to_repo_details(repo_id, from_page),
            ),
            InlineKeyboardButton.callback(
                "🔙 Back to list", CallbackAction.back_to_repo_list(from_page)
            ),
        ]
    ]
    rows.extend(
        [
            InlineKeyboardButton.callback(
                _label_text(label), CallbackAction.toggle_label(label.name, page, from_page)
            )
        ]
        for label in paginated_labels.page_items()
    )
    nav = _nav_row(
        paginated_labels,
        CallbackAction.view_repo_labels(repo_id, page - 1, from_page),
        CallbackAction.view_repo_labels(repo_id, page + 1, from_page),
    )
    if nav:
        rows.append(nav)
    return InlineKeyboardMarkup(rows)


def command_keyboard() -> InlineKeyboardMarkup:
    """The default keyboard with the bot's main commands."""
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton.callback("ℹ️ Help", CallbackAction.cmd_help())],
            [InlineKeyboardButton.callback("📋 Overview", CallbackAction.cmd_overview())],
            [
                InlineKeyboardButton.callback(
                    "⚙️ Manage repositories", CallbackAction.cmd_list()
                )
            ],
            [InlineKeyboardButton.callback("➕ Add repository", CallbackAction.cmd_add())],
        ]
    )