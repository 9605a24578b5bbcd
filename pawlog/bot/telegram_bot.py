"""
PawLog — Telegram Bot.

Telegram is the only user interface. /today shows the selected dog's walk
and meal schedule as a grid of buttons; tapping one toggles the status
(peed / pooped / fed) and redraws the grid. Overdue alerts are pushed to
every allowed user once a minute, and the board rolls over at midnight.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from pawlog.config import settings
from pawlog.core.clock import format_zoned, local_now, local_today
from pawlog.core.reporter import (
    RangePreset,
    percentage_change,
    resolve_range,
    rollup_by_month,
)
from pawlog.core.updater import MutationState, NotFoundError
from pawlog.data.models import RecordKind, Subject, find_subject
from pawlog.ports.record_store import RemoteUnavailable

if TYPE_CHECKING:
    from datetime import datetime

    from pawlog.core.board import DailyBoard
    from pawlog.core.reporter import AggregateReporter
    from pawlog.data.models import AggregatePoint, MonthlyComparison
    from pawlog.ports.notification_port import NotificationPort
    from pawlog.ports.record_store import RecordStore

logger = logging.getLogger(__name__)

_CHECKED = "✅"
_UNCHECKED = "⬜"
_FIELD_ICONS = {"peed": "💧", "pooped": "💩", "completed": "🍽"}


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores updates from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _zone_label(tz_name: str) -> str:
    """Short zone name for display, e.g. "New York"."""
    return tz_name.rsplit("/", 1)[-1].replace("_", " ")


def _selected_subject(context: ContextTypes.DEFAULT_TYPE) -> Subject:
    """The dog this chat is looking at (first dog by default)."""
    board: DailyBoard = context.bot_data["board"]
    subject = find_subject(context.user_data.get("dog_id", ""), board.subjects)
    return subject or board.subjects[0]


def _render_board(
    board: DailyBoard, subject: Subject, now: datetime
) -> tuple[str, InlineKeyboardMarkup]:
    """Build the schedule message and its toggle keyboard for one dog."""
    lines = [
        f"*{subject.display_name}'s Daily Schedule*",
        f"Current time in {_zone_label(board.tz_name)}: {format_zoned(now, board.tz_name)}",
    ]

    overdue = board.overdue(subject, now)
    if overdue:
        lines.append("")
        lines.extend(f"⏰ {m}" for m in overdue)

    keyboard: list[list[InlineKeyboardButton]] = []
    kinds = [RecordKind.WALK]
    if subject.meals_enabled:
        kinds.append(RecordKind.MEAL)

    for kind in kinds:
        records = board.records(subject.id, kind)
        lines.append("")
        lines.append("*Walks*" if kind is RecordKind.WALK else "*Meals*")
        if not records:
            lines.append("No records for today.")
        for record in records:
            row = []
            for field in kind.status_fields:
                done = getattr(record, field)
                row.append(InlineKeyboardButton(
                    f"{record.time} {_FIELD_ICONS[field]} {_CHECKED if done else _UNCHECKED}",
                    callback_data=f"toggle:{subject.id}:{kind.value}:{record.id}:{field}",
                ))
            keyboard.append(row)

    if any(board.is_placeholder(subject.id, kind) for kind in kinds):
        lines.append("")
        lines.append("⚠️ Offline — changes may not be saved. Send /today to retry.")

    return "\n".join(lines), InlineKeyboardMarkup(keyboard)


def _parse_toggle(data: str) -> tuple[int, RecordKind, int, str] | None:
    """Parse `toggle:<dog>:<kind>:<id>:<field>` callback data."""
    parts = data.split(":")
    if len(parts) != 5 or parts[0] != "toggle":
        return None
    try:
        return int(parts[1]), RecordKind(parts[2]), int(parts[3]), parts[4]
    except ValueError:
        return None


def _parse_preset(args: list[str] | None) -> RangePreset | None:
    if not args:
        return RangePreset.MONTH
    try:
        return RangePreset(args[0].strip().lower())
    except ValueError:
        return None


def _format_change(current: int, previous: int) -> str:
    change = percentage_change(current, previous)
    return f"{change:+.0f}%"


def _format_stats(
    subject: Subject,
    preset: RangePreset,
    comparison: MonthlyComparison,
    points: list[AggregatePoint],
) -> str:
    cur, prev = comparison.current, comparison.previous
    lines = [
        f"*Analytics for {subject.display_name}*",
        f"This month: 💧 {cur.pee_count} ({_format_change(cur.pee_count, prev.pee_count)})"
        f"  💩 {cur.poop_count} ({_format_change(cur.poop_count, prev.poop_count)})",
        f"Last month: 💧 {prev.pee_count}  💩 {prev.poop_count}",
        "",
    ]

    if preset is RangePreset.MONTH:
        lines.append("*Daily counts (last month):*")
        series = points
    else:
        title = "last 12 months" if preset is RangePreset.YEAR else "all time"
        lines.append(f"*Monthly counts ({title}):*")
        series = rollup_by_month(points)

    for p in series:
        lines.append(f"`{p.label:<8}` 💧 {p.pee_count}  💩 {p.poop_count}")
    return "\n".join(lines)


async def _safe_edit(query, text: str, markup: InlineKeyboardMarkup) -> None:
    """Edit a message, ignoring Telegram's "message is not modified" error."""
    try:
        await query.edit_message_text(text, reply_markup=markup, parse_mode="Markdown")
    except BadRequest as exc:
        if "not modified" not in str(exc).lower():
            raise
        logger.debug("Board message unchanged")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *PawLog*!\n\n"
        "I keep track of the dogs' walks and meals:\n"
        "• Use /today to see and tick off today's schedule\n"
        "• Use /dog to switch dogs\n"
        "• Use /stats to compare this month with last month\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/today — Today's walks and meals\n"
        "/dog [name] — Choose which dog to show\n"
        "/time — Current local time\n"
        "/stats [month|year|all] — Pee and poop counts\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — reload and show the selected dog's schedule."""
    board: DailyBoard = context.bot_data["board"]
    subject = _selected_subject(context)

    result = await board.load(subject, local_today(board.tz_name))
    for error in result.errors:
        await update.message.reply_text(f"⚠️ Error loading data. {error}")

    text, markup = _render_board(board, subject, local_now(board.tz_name))
    await update.message.reply_text(text, reply_markup=markup, parse_mode="Markdown")


@authorized_only
async def cmd_dog(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dog [name] — select a dog, or offer buttons to pick one."""
    board: DailyBoard = context.bot_data["board"]

    if context.args:
        subject = find_subject(" ".join(context.args), board.subjects)
        if subject is None:
            names = ", ".join(s.display_name for s in board.subjects)
            await update.message.reply_text(f"Unknown dog. Choose one of: {names}")
            return
        context.user_data["dog_id"] = subject.id
        await update.message.reply_text(
            f"Now showing {subject.display_name}. Send /today to see the schedule."
        )
        return

    keyboard = [
        [InlineKeyboardButton(s.display_name, callback_data=f"dog:{s.id}")]
        for s in board.subjects
    ]
    await update.message.reply_text(
        "Which dog?", reply_markup=InlineKeyboardMarkup(keyboard),
    )


@authorized_only
async def cmd_time(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /time — current time in the configured zone."""
    now = local_now(settings.TIMEZONE)
    await update.message.reply_text(
        f"Current time in {_zone_label(settings.TIMEZONE)}: {format_zoned(now, settings.TIMEZONE, seconds=True)}"
    )


@authorized_only
async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats [month|year|all] — monthly comparison and series."""
    reporter: AggregateReporter = context.bot_data["reporter"]
    subject = _selected_subject(context)

    preset = _parse_preset(context.args)
    if preset is None:
        await update.message.reply_text("Usage: /stats [month|year|all]")
        return

    today = local_today(settings.TIMEZONE)
    start, end = resolve_range(preset, today)
    try:
        comparison = await reporter.monthly_comparison(subject.id, today)
        points = await reporter.daily_buckets(subject.id, start, end)
    except RemoteUnavailable as exc:
        logger.error("/stats backend error: %s", exc)
        await update.message.reply_text("Couldn't load analytics. Please try again later.")
        return

    await update.message.reply_text(
        _format_stats(subject, preset, comparison, points), parse_mode="Markdown",
    )


# ---------------------------------------------------------------------------
# Callback handlers
# ---------------------------------------------------------------------------


@authorized_only
async def _handle_dog_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the inline button tap that picks a dog."""
    board: DailyBoard = context.bot_data["board"]
    query = update.callback_query
    await query.answer()

    subject = find_subject(query.data.split(":", 1)[1], board.subjects)
    if subject is None:
        await query.edit_message_text("Unknown dog.")
        return

    context.user_data["dog_id"] = subject.id
    result = await board.load(subject, local_today(board.tz_name))
    text, markup = _render_board(board, subject, local_now(board.tz_name))
    if result.errors:
        text = "⚠️ " + " ".join(result.errors) + "\n\n" + text
    await _safe_edit(query, text, markup)


@authorized_only
async def _handle_toggle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a tap on a status button: flip the field and redraw."""
    board: DailyBoard = context.bot_data["board"]
    query = update.callback_query

    parsed = _parse_toggle(query.data)
    subject = find_subject(parsed[0], board.subjects) if parsed else None
    if parsed is None or subject is None:
        await query.answer("Unknown button.")
        return
    _, kind, record_id, field = parsed

    record = next((r for r in board.records(subject.id, kind) if r.id == record_id), None)
    value = not getattr(record, field, False)

    try:
        mutation = await board.set_field(subject.id, record_id, kind, field, value)
    except NotFoundError:
        logger.info("Toggle on stale board: %s %d", kind.value, record_id)
        await query.answer("That schedule is out of date. Reloading…")
        await board.load(subject, local_today(board.tz_name))
    except ValueError as exc:
        logger.warning("Bad toggle %r: %s", query.data, exc)
        await query.answer("Unknown button.")
        return
    else:
        if mutation.state is MutationState.ROLLED_BACK:
            await query.answer(f"{mutation.error}. Please try again.", show_alert=True)
        elif mutation.state is MutationState.LOCAL_ONLY:
            await query.answer("Saved on this screen only — the backend is unavailable.")
        else:
            await query.answer()

    text, markup = _render_board(board, subject, local_now(board.tz_name))
    await _safe_edit(query, text, markup)


# ---------------------------------------------------------------------------
# Last-resort error handler
# ---------------------------------------------------------------------------


async def _on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log anything a handler didn't catch and point the user at a reload."""
    logger.error("Unhandled error while processing update", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message is not None:
        try:
            await update.effective_message.reply_text(
                "Something went wrong. Send /today to reload."
            )
        except Exception as exc:
            logger.error("Failed to report error to user: %s", exc)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    store: RecordStore | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Record store implementation. Defaults to SupabaseRecordStore.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    from pawlog.core.board import DailyBoard
    from pawlog.core.reporter import AggregateReporter

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).post_init(_post_init).build()

    # Wire default adapters if not provided
    if store is None:
        from pawlog.adapters.supabase_store import SupabaseRecordStore
        store = SupabaseRecordStore(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )

    if notifier is None:
        from pawlog.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    board = DailyBoard(
        store,
        tz_name=settings.TIMEZONE,
        overdue_threshold=settings.OVERDUE_THRESHOLD_MINUTES,
        strict_clock=settings.STRICT_CLOCK,
    )

    # Store shared state in bot_data for handler access
    app.bot_data["board"] = board
    app.bot_data["reporter"] = AggregateReporter(store)
    app.bot_data["notifier"] = notifier
    app.bot_data["alerts_sent"] = set()

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("dog", cmd_dog))
    app.add_handler(CommandHandler("time", cmd_time))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CallbackQueryHandler(_handle_dog_callback, pattern=r"^dog:\d+$"))
    app.add_handler(CallbackQueryHandler(_handle_toggle_callback, pattern=r"^toggle:"))

    app.add_error_handler(_on_error)

    _setup_jobs(app)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


async def _post_init(app: Application) -> None:
    """Load today's records for every dog before polling starts."""
    board: DailyBoard = app.bot_data["board"]
    for result in await board.load_all():
        for error in result.errors:
            logger.warning("Startup load for %s: %s", result.subject.display_name, error)


def _setup_jobs(app: Application) -> None:
    """Register the overdue check and the midnight reset."""
    from pawlog.core.scheduler import midnight_reset, send_overdue_alerts

    tz = ZoneInfo(settings.TIMEZONE)

    async def _overdue_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        board: DailyBoard = context.bot_data["board"]
        sent: set[str] = context.bot_data["alerts_sent"]
        today = local_today(settings.TIMEZONE)
        if board.day is not None and board.day != today:
            # Midnight job was missed (e.g. bot asleep); roll over now
            await midnight_reset(board, sent, today)
        await send_overdue_alerts(
            board,
            context.bot_data["notifier"],
            settings.ALLOWED_USER_IDS,
            local_now(settings.TIMEZONE),
            sent,
        )

    async def _midnight_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await midnight_reset(
            context.bot_data["board"],
            context.bot_data["alerts_sent"],
            local_today(settings.TIMEZONE),
        )

    app.job_queue.run_repeating(
        _overdue_job_callback,
        interval=settings.OVERDUE_CHECK_SECONDS,
        first=settings.OVERDUE_CHECK_SECONDS,
        name="overdue_check",
    )
    app.job_queue.run_daily(
        _midnight_job_callback,
        time=dt_time(hour=0, minute=0, tzinfo=tz),
        name="midnight_reset",
    )

    logger.info(
        "Overdue check every %ds; midnight reset at 00:00 %s",
        settings.OVERDUE_CHECK_SECONDS,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logger.info("Starting PawLog bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
