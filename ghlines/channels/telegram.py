"""Telegram channel adapter."""

import asyncio
import logging
from typing import Optional

from telegram import (
    BotCommand,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    LinkPreviewOptions,
    Message,
    Update,
)
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ChatMemberHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..config import GHLinesSettings
from ..core.pipeline import LineCore
from ..formatting import build_reply
from ..ratelimit import RateLimiter, get_rate_limiter

logger = logging.getLogger("ghlines.telegram")

WELCOME_TEXT = (
    "<b>Thanks for adding me! ❤️</b>\n\n"
    "GHLines runs automatically, without need for commands or configuration. "
    "Just send a GitHub, GitLab or Gist link that mentions one or more lines "
    "(like <code>…/blob/main/app.py#L10-L20</code>) and I will reply with those lines.\n\n"
    "Tap 🗑️ under a snippet to dismiss it. Have fun!"
)

_NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


class TelegramChannel:
    """Telegram bot adapter for GHLines."""

    def __init__(
        self,
        core: LineCore,
        bot_token: str,
        settings: GHLinesSettings,
        limiter: Optional[RateLimiter] = None,
    ):
        self.core = core
        self.bot_token = bot_token
        self.settings = settings
        self.limiter = limiter or get_rate_limiter()
        self.app: Optional[Application] = None
        # Delayed deletes / button expiry, cancelled on stop
        self._tasks: set[asyncio.Task] = set()

    async def start(self):
        """Start the Telegram bot."""
        self.app = (
            Application.builder()
            .token(self.bot_token)
            .build()
        )

        self.app.add_handler(CommandHandler("start", self._cmd_start))
        self.app.add_handler(CommandHandler("help", self._cmd_help))

        # Every plain text message is scanned for links
        self.app.add_handler(MessageHandler(
            filters.TEXT & ~filters.COMMAND,
            self._handle_message,
        ))

        # Welcome message when added to a group
        self.app.add_handler(ChatMemberHandler(
            self._handle_my_chat_member,
            ChatMemberHandler.MY_CHAT_MEMBER,
        ))

        # Dismiss button
        self.app.add_handler(CallbackQueryHandler(self._handle_callback, pattern=r"^dismiss:"))

        self.app.add_error_handler(self._handle_error)

        logger.info("Starting Telegram bot...")
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)

        await self.app.bot.set_my_commands([
            BotCommand("start", "Welcome message"),
            BotCommand("help", "How to use the bot"),
        ])
        logger.info("Telegram bot started.")

    async def stop(self):
        """Stop the Telegram bot."""
        for task in list(self._tasks):
            task.cancel()
        if self.app:
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
            logger.info("Telegram bot stopped.")

    # ── Message handlers ─────────────────────────────────────

    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Reply with the lines behind any permalinks in the message."""
        message = update.effective_message
        if not message or not message.text:
            return

        user = update.effective_user
        if user and user.is_bot:
            return
        chat = update.effective_chat

        try:
            result = await self.core.handle_message(message.text)
        except Exception as e:
            # A fault in the pipeline itself: treat as "no links found".
            logger.error(f"Link pipeline failed for chat {chat.id}: {e}", exc_info=True)
            return

        reply = build_reply(
            result,
            max_lines=self.settings.max_lines,
            max_chars=self.settings.max_message_chars,
        )
        if reply.text is None:
            return

        user_key = str(user.id) if user else str(chat.id)
        allowed, rate_msg = self.limiter.check(user_key)
        if not allowed:
            sent = await message.reply_text(f"⏱️ {rate_msg}")
            self._schedule(self._delete_later(sent, self.settings.notice_delete_seconds))
            return
        self.limiter.record(user_key)

        if reply.to_delete:
            sent = await message.reply_text(reply.text)
            self._schedule(self._delete_later(sent, self.settings.notice_delete_seconds))
            logger.info(f"Refused snippet in chat {chat.id} ({result.total_lines} lines)")
            return

        buttons = [[InlineKeyboardButton("🗑️ Dismiss", callback_data=f"dismiss:{user_key}")]]
        sent = await message.reply_html(
            reply.text,
            reply_markup=InlineKeyboardMarkup(buttons),
            link_preview_options=_NO_PREVIEW,
        )
        self._schedule(self._expire_dismiss(sent, self.settings.dismiss_seconds))
        logger.info(
            f"Sent {len(result.msg_list)} snippet(s), {result.total_lines} lines, to chat {chat.id}"
        )

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Dismiss button: only the author of the original message may use it."""
        query = update.callback_query
        owner = (query.data or "").split(":", 1)[1]
        if str(query.from_user.id) != owner:
            await query.answer("Only the person who posted the link can dismiss this.")
            return

        await query.answer()
        try:
            await query.message.delete()
        except TelegramError as e:
            # Someone else already deleted it
            logger.debug(f"Dismiss delete failed: {e}")

    async def _handle_my_chat_member(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Greet a group when the bot is added to it."""
        member_update = update.my_chat_member
        if not member_update:
            return

        chat = member_update.chat
        new_status = member_update.new_chat_member.status
        old_status = member_update.old_chat_member.status
        if chat.type not in ("group", "supergroup"):
            return

        if new_status in ("member", "administrator") and old_status in ("left", "kicked"):
            logger.info(f"Joined new group {chat.title} ({chat.id})")
            try:
                await context.bot.send_message(chat_id=chat.id, text=WELCOME_TEXT, parse_mode="HTML")
            except TelegramError as e:
                logger.warning(f"Could not greet group {chat.id}: {e}")
        elif new_status in ("left", "kicked") and old_status in ("member", "administrator"):
            logger.info(f"Removed from group {chat.title} ({chat.id})")

    # ── Command handlers ─────────────────────────────────────

    async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command."""
        await update.effective_message.reply_html(WELCOME_TEXT)

    async def _cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command."""
        await update.effective_message.reply_html(
            WELCOME_TEXT
            + f"\n\nUp to {self.settings.max_lines} lines are shown per message."
        )

    # ── Delayed actions ──────────────────────────────────────

    def _schedule(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _delete_later(self, message: Message, delay: float):
        await asyncio.sleep(delay)
        try:
            await message.delete()
        except TelegramError as e:
            logger.debug(f"Delayed delete failed: {e}")

    async def _expire_dismiss(self, message: Message, delay: float):
        await asyncio.sleep(delay)
        try:
            await message.edit_reply_markup(reply_markup=None)
        except TelegramError as e:
            # Already dismissed
            logger.debug(f"Removing dismiss button failed: {e}")

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Handle errors."""
        logger.error(f"Telegram error: {context.error}", exc_info=context.error)
