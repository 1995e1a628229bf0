"""
Scheduler Calendar — Telegram Bot.

Telegram is the presentation layer: it draws the current period model as a
message with an inline keyboard and reports keyboard taps back as user
intents (switch view, step, select day, select event, submit, delete).
Export and import travel as JSON documents.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import InlineKeyboardMarkup, Update
from telegram.error import BadRequest, TelegramError
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from scheduler.bot.rendering import build_keyboard, event_keyboard, render_event, render_text
from scheduler.config import settings
from scheduler.core.clock import format_clock
from scheduler.core.date_math import ViewMode, date_key, parse_date_key
from scheduler.core.view_projector import FormIntent, select_day

if TYPE_CHECKING:
    from scheduler.core.calendar_service import CalendarService
    from scheduler.core.navigation import NavigationController

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, Any]],
) -> Callable[..., Coroutine[Any, Any, Any]]:
    """Decorator that silently ignores updates from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return None  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _service(context: ContextTypes.DEFAULT_TYPE) -> CalendarService:
    return context.bot_data["service"]


def _navigation(context: ContextTypes.DEFAULT_TYPE) -> NavigationController:
    """Per-chat navigation state, created on first use."""
    nav = context.chat_data.get("navigation")
    if nav is None:
        nav = _service(context).navigator()
        context.chat_data["navigation"] = nav
    return nav


def _render(chat_data: dict) -> tuple[str, InlineKeyboardMarkup]:
    """Text and keyboard for the chat's current period."""
    nav: NavigationController = chat_data["navigation"]
    model = nav.current()
    expanded = chat_data.get("annual_month") if model.view_mode is ViewMode.ANNUAL else None
    text = render_text(model, clock=format_clock(), expanded_month=expanded)
    return text, build_keyboard(model, today=date.today(), expanded_month=expanded)


async def _send_calendar(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send a fresh calendar message and remember it for the clock tick."""
    _navigation(context)
    text, keyboard = _render(context.chat_data)
    message = await update.effective_message.reply_text(text, reply_markup=keyboard)
    context.chat_data["calendar_message_id"] = message.message_id


def _is_not_modified(exc: BadRequest) -> bool:
    """Same period re-rendered within the same minute."""
    return "message is not modified" in str(exc).lower()


async def _redraw_calendar(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Edit the message whose button was tapped into the current period."""
    _navigation(context)
    text, keyboard = _render(context.chat_data)
    query = update.callback_query
    try:
        await query.edit_message_text(text, reply_markup=keyboard)
    except BadRequest as exc:
        if _is_not_modified(exc):
            logger.debug("Calendar redraw skipped: %s", exc)
        else:
            logger.warning("Calendar redraw failed: %s", exc)
    context.chat_data["calendar_message_id"] = query.message.message_id


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message and the current month."""
    await update.message.reply_text(
        "Welcome to the Scheduler Calendar!\n\n"
        "• Tap a day to add an event, tap an event to edit or delete it\n"
        "• Switch between Year, Month, Week and Day views with the top row\n"
        "• /export sends your events as a JSON file; send that file back to import it\n\n"
        "Type /help for the full command list."
    )
    await _send_calendar(update, context)


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/calendar — Show the calendar\n"
        "/today — Show today's events\n"
        "/add — Add an event\n"
        "/export — Download all events as a JSON file\n"
        "/cancel — Abandon the event form\n"
        "/help — Show this message\n\n"
        "Send a .json export file to replace all events with its content."
    )


@authorized_only
async def cmd_calendar(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /calendar — show the current period."""
    await _send_calendar(update, context)


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — jump to today's daily view."""
    _navigation(context).jump_to_date(date.today())
    await _send_calendar(update, context)


@authorized_only
async def cmd_export(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export — send the whole collection as a JSON document."""
    service = _service(context)
    payload = service.export_document()
    await update.message.reply_document(
        document=payload,
        filename=settings.EXPORT_FILENAME,
        caption=f"{len(service.store)} events",
    )
    logger.info("Exported %d events to chat %s", len(service.store), update.effective_chat.id)


@authorized_only
async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an uploaded file — import it, replacing every event."""
    try:
        tg_file = await update.message.document.get_file()
        raw = bytes(await tg_file.download_as_bytearray())
    except TelegramError as exc:
        logger.error("Import download failed: %s", exc)
        await update.message.reply_text(f"Error reading file: {exc}")
        return

    response = await _service(context).import_document(raw)
    await update.message.reply_text(response.message)
    if response.applied:
        await _send_calendar(update, context)


# ---------------------------------------------------------------------------
# Calendar keyboard callbacks
# ---------------------------------------------------------------------------


@authorized_only
async def handle_view_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """view:<mode> — switch view, keep the reference date."""
    query = update.callback_query
    await query.answer()
    mode = ViewMode(query.data.split(":", 1)[1])
    context.chat_data.pop("annual_month", None)
    _navigation(context).switch_view(mode)
    await _redraw_calendar(update, context)


@authorized_only
async def handle_nav_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """nav:prev|next|today|stay — move the reference date."""
    query = update.callback_query
    await query.answer()
    action = query.data.split(":", 1)[1]
    nav = _navigation(context)

    if action == "prev":
        nav.step_backward()
    elif action == "next":
        nav.step_forward()
    elif action == "today":
        nav.go_today()
    if action != "stay":
        context.chat_data.pop("annual_month", None)
    await _redraw_calendar(update, context)


@authorized_only
async def handle_month_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """month:<MM> — expand one month of the annual view into day buttons."""
    query = update.callback_query
    await query.answer()
    month_index = int(query.data.split(":", 1)[1]) - 1
    if context.chat_data.get("annual_month") == month_index:
        context.chat_data.pop("annual_month", None)
    else:
        context.chat_data["annual_month"] = month_index
    await _redraw_calendar(update, context)


async def handle_noop_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.callback_query.answer()


@authorized_only
async def handle_event_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """event:<id> — show the event with edit and delete actions."""
    query = update.callback_query
    await query.answer()
    event = _service(context).store.get(query.data.split(":", 1)[1])
    if event is None:
        await _redraw_calendar(update, context)
        return
    # The detail view replaces the calendar; the clock tick must leave it alone
    context.chat_data.pop("calendar_message_id", None)
    await query.edit_message_text(render_event(event), reply_markup=event_keyboard(event))


@authorized_only
async def handle_delete_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """delete:<id> — remove the event and redraw the calendar."""
    query = update.callback_query
    event_id = query.data.split(":", 1)[1]
    response = await _service(context).delete_event(event_id)
    await query.answer(response.message)
    await _redraw_calendar(update, context)


# ---------------------------------------------------------------------------
# Event form conversation
# ---------------------------------------------------------------------------

# ConversationHandler states for the event form
(
    FORM_TITLE,
    FORM_DATE,
    FORM_TIME,
    FORM_DESCRIPTION,
) = range(4)

_KEEP = "-"
_CLEAR = "."

_PROMPTS = {
    "title": "Title?",
    "date": "Date? (YYYY-MM-DD)",
    "time": "Time? (optional, e.g. 14:30)",
    "description": "Description? (optional)",
}


def _prompt(field: str, current: str) -> str:
    """Question for one form field, showing how to keep or clear its value."""
    text = _PROMPTS[field]
    if current:
        text += f"\nCurrent: {current}\nSend {_KEEP} to keep it"
        if field in ("time", "description"):
            text += f", {_CLEAR} to clear it"
        text += "."
    elif field in ("time", "description"):
        text += f"\nSend {_KEEP} to skip."
    return text


def _start_form(context: ContextTypes.DEFAULT_TYPE, intent: FormIntent) -> None:
    context.user_data["event_form"] = dict(intent.fields)
    context.user_data["form_mode"] = intent.mode


def _clear_form_data(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remove all form-related keys from user_data."""
    for k in ("event_form", "form_mode"):
        context.user_data.pop(k, None)


def _resolve(text: str, current: str, optional: bool) -> str:
    """Apply the keep/clear shortcuts to a typed answer."""
    text = text.strip()
    if text == _KEEP:
        return current
    if optional and text == _CLEAR:
        return ""
    return text


@authorized_only
async def form_from_day(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """day:<date> / new:<date> — annual view drills in, other views open the create form."""
    query = update.callback_query
    await query.answer()
    kind, key = query.data.split(":", 1)
    try:
        day = parse_date_key(key)
    except ValueError:
        logger.warning("Ignoring malformed day callback %r", query.data)
        return ConversationHandler.END

    if kind == "new":
        result = select_day(day)
    else:
        result = _service(context).select_day(_navigation(context), day)

    if not isinstance(result, FormIntent):
        context.chat_data.pop("annual_month", None)
        await _redraw_calendar(update, context)
        return ConversationHandler.END

    _start_form(context, result)
    await update.effective_message.reply_text(f"New event on {key}.\n\n" + _prompt("title", ""))
    return FORM_TITLE


@authorized_only
async def form_from_event(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """edit:<id> — open the form pre-filled with every field of the event."""
    query = update.callback_query
    await query.answer()
    intent = _service(context).select_event(query.data.split(":", 1)[1])
    if intent is None:
        await query.edit_message_text("Event not found. It may have been deleted.")
        return ConversationHandler.END

    _start_form(context, intent)
    await update.effective_message.reply_text(
        "Editing event.\n\n" + _prompt("title", intent.fields["title"])
    )
    return FORM_TITLE


@authorized_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /add — open the create form for the current reference date."""
    intent = select_day(_navigation(context).reference_date)
    _start_form(context, intent)
    await update.message.reply_text(_prompt("title", ""))
    return FORM_TITLE


async def form_title(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    form = context.user_data["event_form"]
    title = _resolve(update.message.text, form["title"], optional=False)
    if not title:
        await update.message.reply_text("Title is required!\n\n" + _prompt("title", ""))
        return FORM_TITLE
    form["title"] = title
    await update.message.reply_text(_prompt("date", form["date"]))
    return FORM_DATE


async def form_date(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    form = context.user_data["event_form"]
    value = _resolve(update.message.text, form["date"], optional=False)
    try:
        value = date_key(parse_date_key(value))
    except ValueError:
        await update.message.reply_text(
            "Please enter a valid date as YYYY-MM-DD.\n\n" + _prompt("date", form["date"])
        )
        return FORM_DATE
    form["date"] = value
    await update.message.reply_text(_prompt("time", form["time"]))
    return FORM_TIME


async def form_time(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    form = context.user_data["event_form"]
    form["time"] = _resolve(update.message.text, form["time"], optional=True)
    await update.message.reply_text(_prompt("description", form["description"]))
    return FORM_DESCRIPTION


async def form_description(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Last field — submit the form and show the updated calendar."""
    form = context.user_data["event_form"]
    form["description"] = _resolve(update.message.text, form["description"], optional=True)

    response = await _service(context).submit_event(form)
    await update.message.reply_text(response.message)
    if not response.applied:
        # Rejected: form stays open at the first field
        await update.message.reply_text(_prompt("title", form["title"]))
        return FORM_TITLE

    _clear_form_data(context)
    await _send_calendar(update, context)
    return ConversationHandler.END


async def form_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Abandon the event form."""
    _clear_form_data(context)
    await update.message.reply_text("Event form closed. Nothing was saved.")
    return ConversationHandler.END


# ---------------------------------------------------------------------------
# Clock tick
# ---------------------------------------------------------------------------


async def _clock_tick(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Refresh the clock line of every chat's latest calendar message.

    Reads the store but never takes its lock, so it cannot delay edits.
    """
    # Snapshot: handlers may add chats while an edit is awaited
    for chat_id, chat_data in list(context.application.chat_data.items()):
        message_id = chat_data.get("calendar_message_id")
        if message_id is None or "navigation" not in chat_data:
            continue
        text, keyboard = _render(chat_data)
        try:
            await context.bot.edit_message_text(
                text, chat_id=chat_id, message_id=message_id, reply_markup=keyboard,
            )
        except BadRequest as exc:
            if _is_not_modified(exc):
                logger.debug("Clock refresh skipped for chat %s: %s", chat_id, exc)
            else:
                logger.warning("Clock refresh failed for chat %s: %s", chat_id, exc)
        except TelegramError as exc:
            logger.warning("Clock refresh failed for chat %s: %s", chat_id, exc)


def _setup_clock(app: Application) -> None:
    """Register the repeating clock refresh job."""
    if app.job_queue is None:
        logger.warning("JobQueue unavailable; install python-telegram-bot[job-queue] for the clock")
        return
    app.job_queue.run_repeating(
        _clock_tick,
        interval=settings.CLOCK_REFRESH_SECONDS,
        first=settings.CLOCK_REFRESH_SECONDS,
        name="clock_refresh",
    )
    logger.info("Clock refresh scheduled every %d seconds", settings.CLOCK_REFRESH_SECONDS)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


async def _on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log handler failures; the calendar keeps serving other updates."""
    logger.error("Error while handling update %s: %s", update, context.error)


def build_app(service: CalendarService | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Calendar service. Defaults to one backed by the storage
                 adapter selected in STORAGE_BACKEND.
    """
    if service is None:
        from scheduler.adapters.storage_factory import create_storage_adapter
        from scheduler.core.calendar_service import CalendarService

        service = CalendarService(create_storage_adapter())

    async def _post_init(application: Application) -> None:
        count = await service.load()
        logger.info("Calendar ready with %d events", count)

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).post_init(_post_init).build()
    app.bot_data["service"] = service

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("calendar", cmd_calendar))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("export", cmd_export))

    # Event form conversation handler
    _text = filters.TEXT & ~filters.COMMAND
    form_conv = ConversationHandler(
        entry_points=[
            CommandHandler("add", cmd_add),
            CallbackQueryHandler(form_from_day, pattern=r"^(day|new):"),
            CallbackQueryHandler(form_from_event, pattern=r"^edit:"),
        ],
        states={
            FORM_TITLE: [MessageHandler(_text, form_title)],
            FORM_DATE: [MessageHandler(_text, form_date)],
            FORM_TIME: [MessageHandler(_text, form_time)],
            FORM_DESCRIPTION: [MessageHandler(_text, form_description)],
        },
        fallbacks=[CommandHandler("cancel", form_cancel)],
        allow_reentry=True,
    )
    app.add_handler(form_conv)

    # Calendar keyboard
    app.add_handler(CallbackQueryHandler(handle_view_callback, pattern=r"^view:(annual|monthly|weekly|daily)$"))
    app.add_handler(CallbackQueryHandler(handle_nav_callback, pattern=r"^nav:(prev|next|today|stay)$"))
    app.add_handler(CallbackQueryHandler(handle_month_callback, pattern=r"^month:\d{2}$"))
    app.add_handler(CallbackQueryHandler(handle_event_callback, pattern=r"^event:"))
    app.add_handler(CallbackQueryHandler(handle_delete_callback, pattern=r"^delete:"))
    app.add_handler(CallbackQueryHandler(handle_noop_callback, pattern=r"^noop$"))

    # Import files
    app.add_handler(MessageHandler(filters.Document.ALL, handle_document))

    app.add_error_handler(_on_error)

    _setup_clock(app)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    token = settings.TELEGRAM_BOT_TOKEN
    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting Scheduler Calendar bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
