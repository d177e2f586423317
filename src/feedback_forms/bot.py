from __future__ import annotations

import logging
from typing import List, Optional

from aiogram import Bot, Dispatcher, F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from .config import Settings
from .db import init_db
from .forms.engine import (
    DuplicateResponseError,
    FormInactiveError,
    FormNotFoundError,
    ResponseValidationError,
    close_run,
    current_field,
    finish_run,
    form_fields,
    get_active_run,
    get_form,
    get_run,
    record_answer,
    run_answers,
    start_run,
)
from .forms.responses import Control, render_field, validate_response
from .models import FeedbackRun


logger = logging.getLogger(__name__)

router = Router()

TEXT_KINDS = ("input", "textarea")
RATING_ROW = 5


def respondent_name(tg_user) -> str:
    return tg_user.username or f"tg:{tg_user.id}"


def prompt_text(control: Control, position: int, total: int) -> str:
    lines = [f"({position}/{total}) {control.label}" + (" *" if control.required else "")]
    if control.description:
        lines.append(control.description)
    if control.kind in TEXT_KINDS:
        lines.append("(type your answer and send it)")
    elif control.kind == "checkbox":
        lines.append("(select all that apply, then press Done)")
    return "\n".join(lines)


def build_keyboard(control: Control, run_id: int) -> Optional[InlineKeyboardMarkup]:
    # callback data carries option indexes, labels may exceed telegram's 64 bytes
    rows: List[List[InlineKeyboardButton]] = []
    if control.kind in ("radio", "select"):
        rows = [
            [InlineKeyboardButton(text=opt, callback_data=f"fb:pick:{run_id}:{i}")]
            for i, opt in enumerate(control.options)
        ]
    elif control.kind == "checkbox":
        chosen = control.value if isinstance(control.value, list) else []
        rows = [
            [
                InlineKeyboardButton(
                    text=("✓ " if opt in chosen else "") + opt,
                    callback_data=f"fb:toggle:{run_id}:{i}",
                )
            ]
            for i, opt in enumerate(control.options)
        ]
        rows.append([InlineKeyboardButton(text="Done", callback_data=f"fb:done:{run_id}")])
    elif control.kind == "rating":
        buttons = [
            InlineKeyboardButton(text=str(n), callback_data=f"fb:rate:{run_id}:{n}")
            for n in range(1, (control.max_rating or 0) + 1)
        ]
        rows = [buttons[i : i + RATING_ROW] for i in range(0, len(buttons), RATING_ROW)]
    if not control.required:
        rows.append([InlineKeyboardButton(text="Skip", callback_data=f"fb:skip:{run_id}")])
    return InlineKeyboardMarkup(inline_keyboard=rows) if rows else None


async def _reply(message_or_cb: Message | CallbackQuery, text: str, kb: Optional[InlineKeyboardMarkup] = None) -> None:
    if isinstance(message_or_cb, CallbackQuery):
        await message_or_cb.message.edit_text(text, reply_markup=kb)
        await message_or_cb.answer()
    else:
        await message_or_cb.answer(text, reply_markup=kb)


async def present_current_field(message_or_cb: Message | CallbackQuery, run: FeedbackRun) -> None:
    form = get_form(run.form_id)
    fields = form_fields(form)
    field = current_field(run, fields)
    if not field:
        try:
            finish_run(run.id or 0)
            text = "Thank you! Your feedback has been submitted."
        except DuplicateResponseError:
            close_run(run.id or 0)
            text = "You have already submitted feedback for this form."
        except FormInactiveError:
            close_run(run.id or 0)
            text = "This feedback form is closed."
        except ResponseValidationError as e:
            close_run(run.id or 0)
            text = "Feedback could not be submitted:\n" + "\n".join(e.errors)
        await _reply(message_or_cb, text)
        return
    control = render_field(field, run_answers(run).get(field.id))
    text = prompt_text(control, run.current_index + 1, len(fields))
    await _reply(message_or_cb, text, build_keyboard(control, run.id or 0))


@router.message(Command("feedback"))
async def cmd_feedback(message: Message) -> None:
    # Usage: /feedback <form_id>
    tg_user = message.from_user
    if not tg_user or getattr(tg_user, "is_bot", False):
        return
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2 or not parts[1].strip().isdigit():
        await message.answer("Format: /feedback <form_id>")
        return
    try:
        run = start_run(int(parts[1].strip()), tg_user.id, respondent_name(tg_user))
    except FormNotFoundError:
        await message.answer("Feedback form not found")
        return
    except FormInactiveError:
        await message.answer("This feedback form is closed.")
        return
    await present_current_field(message, run)


@router.callback_query(F.data.startswith("fb:"))
async def cb_feedback(cb: CallbackQuery) -> None:
    try:
        parts = cb.data.split(":")
        action, run_id = parts[1], int(parts[2])
        arg = parts[3] if len(parts) > 3 else None
    except (IndexError, ValueError):
        await cb.answer("Invalid button data", show_alert=True)
        return
    run = get_run(run_id)
    if not run or run.completed_at is not None or run.tg_id != cb.from_user.id:
        await cb.answer("This feedback session is over")
        return
    fields = form_fields(get_form(run.form_id))
    field = current_field(run, fields)
    if not field:
        await present_current_field(cb, run)
        return

    options = field.options or []
    selected = run_answers(run).get(field.id)
    try:
        if action == "pick":
            value = options[int(arg or "")]
        elif action == "rate":
            value = int(arg or "")
        elif action == "toggle":
            option = options[int(arg or "")]
            chosen = list(selected or [])
            chosen = [c for c in chosen if c != option] if option in chosen else chosen + [option]
            run = record_answer(run_id, field.id, chosen, advance=False)
            await present_current_field(cb, run)
            return
        elif action == "done":
            value = selected or []
        elif action == "skip":
            value = None
        else:
            await cb.answer("Unknown action", show_alert=True)
            return
    except (IndexError, ValueError):
        await cb.answer("This option is no longer available", show_alert=True)
        return

    errors = validate_response(field, value)
    if errors:
        await cb.answer(errors[0], show_alert=True)
        return
    run = record_answer(run_id, field.id, value)
    await present_current_field(cb, run)


@router.message()
async def on_any_message(message: Message) -> None:
    tg_user = message.from_user
    if not tg_user or getattr(tg_user, "is_bot", False) or not message.text:
        return
    run = get_active_run(tg_user.id)
    if not run:
        return
    field = current_field(run, form_fields(get_form(run.form_id)))
    if not field or render_field(field).kind not in TEXT_KINDS:
        return
    value = message.text.strip()
    errors = validate_response(field, value)
    if errors:
        await message.answer("\n".join(errors))
        return
    run = record_answer(run.id or 0, field.id, value)
    await present_current_field(message, run)


async def run_bot() -> None:
    settings = Settings()
    if not settings.bot_token:
        logger.warning("BOT_TOKEN is not set, chat bot disabled")
        return
    init_db()

    bot = Bot(token=settings.bot_token)
    dp = Dispatcher()
    dp.include_router(router)

    await dp.start_polling(bot)
