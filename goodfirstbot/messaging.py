"""Sending bot messages, keyboards and callback answers through the Telegram Bot API."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

import httpx

from goodfirstbot.actions import github_color_to_emoji
from goodfirstbot.keyboards import (
    InlineKeyboardMarkup,
    LabelNormalized,
    build_repo_item_keyboard,
    build_repo_labels_keyboard,
    build_repo_list_keyboard,
    command_keyboard,
)
from goodfirstbot.pagination import Paginated
from goodfirstbot.poller import Issue
from goodfirstbot.repo_entity import RepoEntity

log = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

DEFAULT_HELP_TEXT = (
    "These commands are supported:\n"
    "/start — Start the bot\n"
    "/help — Show this help\n"
    "/overview — Show tracked repositories and labels\n"
    "/list — Manage tracked repositories\n"
    "/add — Add repositories to track"
)

LIST_TITLE = "🔍 Your tracked repositories:"
NO_LABELS_TRACKED = "⚠️ No labels are being tracked in this repository."


class MessagingError(Exception):
    """A request to the Telegram Bot API failed."""

    def __init__(self, reason: object) -> None:
        super().__init__(f"Telegram API request failed: {reason}")
        self.reason = reason
        if isinstance(reason, BaseException):
            self.__cause__ = reason


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _link(url: str, text: str) -> str:
    return f'<a href="{url}">{text}</a>'


def _markup(keyboard: InlineKeyboardMarkup) -> dict[str, Any]:
    return {
        "inline_keyboard": [
            [{"text": b.text, "callback_data": b.callback_data} for b in row]
            for row in keyboard.inline_keyboard
        ]
    }


def format_paginated_message_text(
    title: str, paginated: Paginated[Any], item_name_plural: str
) -> str:
    """Header text for a paginated list message."""
    if paginated.total_items == 0:
        return f"{title}\n\nNo {item_name_plural} found."
    return (
        f"{title} (Page {paginated.page} of {paginated.total_pages})\n"
        f"Total {item_name_plural}: {paginated.total_items}"
    )


class TelegramBotApi:
    """A minimal asynchronous client for the Telegram Bot API."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = TELEGRAM_API_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/bot{token}"
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=30.0)

    async def __aenter__(self) -> TelegramBotApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def call(self, method: str, **kwargs: Any) -> Any:
        """Invoke ``method`` with the given parameters; ``None`` values are omitted."""
        payload = {key: value for key, value in kwargs.items() if value is not None}
        try:
            response = await self._client.post(f"{self._url}/{method}", json=payload)
        except httpx.HTTPError as e:
            raise MessagingError(e) from e
        try:
            body = response.json()
        except ValueError as e:
            raise MessagingError(f"invalid response (HTTP {response.status_code})") from e
        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise MessagingError(description or f"HTTP {response.status_code}")
        return body.get("result")

    async def close(self) -> None:
        """Release the underlying HTTP client if this object created it."""
        if self._owns_client:
            await self._client.aclose()


class _Bot(Protocol):
    async def call(self, method: str, **kwargs: Any) -> Any: ...


class TelegramMessagingService:
    """Formats the bot's messages and sends them through a Telegram bot."""

    def __init__(self, bot: _Bot, help_text: str = DEFAULT_HELP_TEXT) -> None:
        self.bot = bot
        self.help_text = help_text

    async def _edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        keyboard: InlineKeyboardMarkup,
        html: bool = True,
    ) -> None:
        await self.bot.call(
            "editMessageText",
            chat_id=chat_id,
            message_id=message_id,
            text=text,
            parse_mode="HTML" if html else None,
            reply_markup=_markup(keyboard),
        )

    async def send_response_with_keyboard(
        self, chat_id: int, text: str, keyboard: InlineKeyboardMarkup | None = None
    ) -> None:
        """Send an HTML message; the command keyboard is used when none is given."""
        if keyboard is None:
            keyboard = command_keyboard()
        await self.bot.call(
            "sendMessage",
            chat_id=chat_id,
            text=text,
            parse_mode="HTML",
            reply_markup=_markup(keyboard),
            link_preview_options={"is_disabled": True},
        )

    async def prompt_for_repo_input(self, chat_id: int) -> None:
        """Ask the user to reply with repository URLs."""
        await self.bot.call(
            "sendMessage",
            chat_id=chat_id,
            text="Please reply with repository URLs separated by spaces or new lines.",
            reply_markup={"force_reply": True},
        )

    async def send_error_msg(self, chat_id: int, error: BaseException) -> None:
        """Report an error to the user."""
        await self.send_response_with_keyboard(chat_id, _escape(str(error)))

    async def send_help_msg(self, chat_id: int) -> None:
        """Send the list of commands."""
        await self.send_response_with_keyboard(chat_id, self.help_text, command_keyboard())

    async def send_start_msg(self, chat_id: int) -> None:
        """Send the welcome message."""
        await self.send_response_with_keyboard(
            chat_id,
            "👋 Welcome! Use buttons below to track repository issues (i.e. 'good first "
            "issue', 'bug', 'enhancement', etc.)",
        )

    async def send_list_empty_msg(self, chat_id: int) -> None:
        """Tell the user that no repositories are tracked."""
        await self.send_response_with_keyboard(chat_id, "Currently no repositories tracked")

    async def send_list_msg(self, chat_id: int, paginated_repos: Paginated[RepoEntity]) -> None:
        """Send the paginated list of tracked repositories."""
        keyboard = build_repo_list_keyboard(paginated_repos)
        text = format_paginated_message_text(LIST_TITLE, paginated_repos, "repositories")
        await self.send_response_with_keyboard(chat_id, text, keyboard)

    async def answer_callback_query(self, query_id: str, text: str | None = None) -> None:
        """Acknowledge a button press, optionally with a notification text."""
        await self.bot.call("answerCallbackQuery", callback_query_id=query_id, text=text)

    async def answer_remove_callback_query(self, query_id: str, removed: bool) -> None:
        """Acknowledge a removal with its outcome."""
        text = (
            "✅ Repository removed successfully." if removed else "❌ Repository not found."
        )
        await self.bot.call("answerCallbackQuery", callback_query_id=query_id, text=text)

    async def answer_details_callback_query(
        self,
        chat_id: int,
        message_id: int,
        repo: RepoEntity,
        labels: Sequence[LabelNormalized],
        from_page: int,
    ) -> None:
        """Show a repository's details and tracked labels in place of the message."""
        repo_link = _link(repo.url(), _escape(repo.name_with_owner))
        parts = [f"📦 Repository: {repo_link}", ""]
        if not labels:
            parts.append(NO_LABELS_TRACKED)
        else:
            parts.append("🏷️ Tracked labels:")
            parts.extend(
                f"- {github_color_to_emoji(label.color)} {_escape(label.name)}"
                for label in labels
            )
        parts.append("")
        await self._edit_text(
            chat_id, message_id, "\n".join(parts), build_repo_item_keyboard(repo, from_page)
        )

    async def answer_labels_callback_query(
        self,
        chat_id: int,
        message_id: int,
        paginated_labels: Paginated[LabelNormalized],
        repo_name_with_owner: str,
        from_page: int,
    ) -> None:
        """Show the label management view for a repository."""
        keyboard = build_repo_labels_keyboard(paginated_labels, repo_name_with_owner, from_page)
        title = f"🏷️ Manage labels for {_escape(repo_name_with_owner)}:"
        text = format_paginated_message_text(title, paginated_labels, "labels")
        await self._edit_text(chat_id, message_id, text, keyboard)

    async def answer_toggle_label_callback_query(
        self, query_id: str, label_name: str, is_selected: bool
    ) -> None:
        """Acknowledge a label toggle with its outcome."""
        if is_selected:
            text = f"✅ Label {label_name} has been added."
        else:
            text = f"❌ Label {label_name} has been removed."
        await self.bot.call("answerCallbackQuery", callback_query_id=query_id, text=text)

    async def edit_list_msg(
        self, chat_id: int, message_id: int, paginated_repos: Paginated[RepoEntity]
    ) -> None:
        """Replace a message with the current repository list."""
        keyboard = build_repo_list_keyboard(paginated_repos)
        text = format_paginated_message_text(LIST_TITLE, paginated_repos, "repositories")
        await self._edit_text(chat_id, message_id, text, keyboard)

    async def edit_labels_msg(
        self,
        chat_id: int,
        message_id: int,
        paginated_labels: Paginated[LabelNormalized],
        repo_name_with_owner: str,
        from_page: int,
    ) -> None:
        """Replace a message with the updated label management view."""
        keyboard = build_repo_labels_keyboard(paginated_labels, repo_name_with_owner, from_page)
        text = (
            "⚠️ No labels available for this repository."
            if not paginated_labels.items
            else "🏷️ Manage repository labels:"
        )
        await self._edit_text(chat_id, message_id, text, keyboard, html=False)

    async def send_new_issues_msg(
        self, chat_id: int, repo_name_with_owner: str, issues: Iterable[Issue]
    ) -> None:
        """Notify a chat of new issues in a repository."""
        lines = "\n".join(f"- {issue.title}: {issue.url}" for issue in issues)
        await self.bot.call(
            "sendMessage",
            chat_id=chat_id,
            text=f"🚨 New issues in {repo_name_with_owner}:\n\n{lines}",
        )

    async def send_add_summary_msg(
        self,
        chat_id: int,
        successfully_added: Iterable[str],
        already_tracked: Iterable[str],
        not_found: Iterable[str],
        invalid_urls: Iterable[str],
        errors: Iterable[tuple[str, str]],
    ) -> None:
        """Summarise the outcome of adding repositories."""
        summary = ["<b>Summary of repository addition:</b>"]
        categories = [
            ("✅ Successfully Added", successfully_added),
            ("➡️ Already Tracked", already_tracked),
            ("❓ Not Found on GitHub", not_found),
            ("⚠️ Invalid URL", invalid_urls),
        ]
        for title, items in categories:
            entries = sorted(set(items))
            if entries:
                body = "\n".join(f"- {_escape(item)}" for item in entries)
                summary.append(f"<b>{_escape(title)}:</b>\n{body}")

        error_entries = sorted(set(errors))
        if error_entries:
            body = "\n".join(
                f"- {_escape(repo)}: {_escape(message)}" for repo, message in error_entries
            )
            summary.append(f"❌ <b>Errors:</b>\n{body}")

        if len(summary) == 1:
            summary.append("No valid URLs were processed, or all inputs were empty.")

        await self.send_response_with_keyboard(chat_id, "\n\n".join(summary))

    async def send_overview_msg(
        self, chat_id: int, overview: Sequence[tuple[RepoEntity, Sequence[str]]]
    ) -> None:
        """Send every tracked repository with its tracked labels."""
        log.debug(
            "Sending overview message to chat %s with %d repositories.", chat_id, len(overview)
        )
        if not overview:
            log.warning("No repositories found for overview.")

        parts = ["📊 Overview of your tracked repositories and labels:", ""]
        for repo, labels in overview:
            repo_link = _link(repo.url(), _escape(repo.name_with_owner))
            parts.append(f"📦 <b>Repository:</b> {repo_link}")
            if not labels:
                parts.append(NO_LABELS_TRACKED)
            else:
                parts.append("🏷️ <b>Tracked labels:</b>")
                parts.extend(f"- {_escape(label)}" for label in labels)
            parts.append("")

        await self.send_response_with_keyboard(chat_id, "\n".join(parts))