"""
Photo Processing Handler - turns a photo into a Pixar-style cartoon.

Buttons:
- ✨ ZAUBERN / 💾 SPEICHERN / 🔁 Nochmal / 🖼️ Anderes Foto
"""

import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from alice_magic.controller import SessionRegistry, TransformationController
from alice_magic.errors import REMEDIATION_STEPS
from alice_magic.images import DOWNLOAD_FILENAME
from alice_magic.states import RequestState
from bot.keyboards.keyboards import failure_keyboard, result_keyboard, transform_keyboard
from bot.utils.formatters import handle_telegram_errors, safe_send_message

logger = logging.getLogger(__name__)

router = Router()


def session_key(chat_id: int) -> str:
    return f"tg:{chat_id}"


def failure_text(controller: TransformationController) -> str:
    error = controller.error
    text = f"❗️ {error.message}"
    if error.remediate:
        text += f"\n\n<b>Lösung:</b>\n{REMEDIATION_STEPS}"
    return text


async def send_outcome(message: Message, controller: TransformationController, user_id: int) -> Optional[Message]:
    """Reply with whatever the controller ended up with."""
    if controller.state is RequestState.SUCCEEDED:
        png = controller.download()
        if png is not None:
            return await message.answer_photo(
                photo=BufferedInputFile(png, filename=DOWNLOAD_FILENAME),
                caption="🎉 Fertig! Hier ist dein Zauberbild.",
                reply_markup=result_keyboard()
            )

    if controller.state is RequestState.FAILED:
        return await safe_send_message(
            message,
            failure_text(controller),
            user_id=user_id,
            parse_mode="HTML",
            reply_markup=failure_keyboard() if controller.source else None
        )

    # Cancelled in the meantime (new photo or reset): nothing to report.
    return None


# ============================================================================
# Photo upload
# ============================================================================

@router.message(F.photo)
@handle_telegram_errors
async def process_photo(message: Message, bot: Bot, sessions: SessionRegistry):
    """A photo sent the usual way; Telegram always delivers these as JPEG."""
    telegram_id = message.from_user.id
    photo = message.photo[-1]

    logger.info(f"📸 Photo received from user {telegram_id}, file_id: {photo.file_id}")

    buffer = await bot.download(photo)
    await load_and_reply(message, sessions, buffer.getvalue(), "image/jpeg")


@router.message(F.document.mime_type.startswith("image/"))
@handle_telegram_errors
async def process_image_document(message: Message, bot: Bot, sessions: SessionRegistry):
    """An image sent as a file, uncompressed."""
    telegram_id = message.from_user.id
    document = message.document

    logger.info(f"📎 Image document received from user {telegram_id}: {document.mime_type}")

    buffer = await bot.download(document)
    await load_and_reply(message, sessions, buffer.getvalue(), document.mime_type)


async def load_and_reply(message: Message, sessions: SessionRegistry, raw: bytes, content_type: str):
    telegram_id = message.from_user.id
    controller = sessions.get(session_key(message.chat.id))

    state = await controller.load_image(raw, content_type)

    if state is RequestState.READY:
        await safe_send_message(
            message,
            "🖼️ <b>Foto geladen!</b>\n\nTippe auf <b>ZAUBERN</b>, und Alice macht daraus einen Pixar-Helden.",
            user_id=telegram_id,
            parse_mode="HTML",
            reply_markup=transform_keyboard()
        )
    else:
        await send_outcome(message, controller, telegram_id)


@router.message(F.text & ~F.text.startswith("/"))
@handle_telegram_errors
async def process_not_a_photo(message: Message):
    """Text instead of a photo."""
    await safe_send_message(
        message,
        "Das sieht nicht nach einem Foto aus. Schick mir bitte ein Bild.",
        user_id=message.from_user.id
    )


# ============================================================================
# Callback transform - send the photo to the image model
# ============================================================================

@router.callback_query(F.data == "transform")
@handle_telegram_errors
async def callback_transform(callback: CallbackQuery, sessions: SessionRegistry):
    telegram_id = callback.from_user.id
    controller = sessions.get(session_key(callback.message.chat.id))

    if controller.in_flight:
        await callback.answer("⏳ Alice zaubert schon...")
        return

    if controller.source is None:
        await callback.answer("Schick mir zuerst ein Foto.", show_alert=True)
        return

    await callback.answer()

    processing_message = await safe_send_message(
        callback.message,
        "🔮 <b>ALICE ZAUBERT...</b>\n\nDas dauert meistens nicht länger als eine Minute.",
        user_id=telegram_id,
        parse_mode="HTML"
    )

    try:
        await controller.transform()
    finally:
        if processing_message:
            await processing_message.delete()

    await send_outcome(callback.message, controller, telegram_id)


# ============================================================================
# Callback download - send the result as a file
# ============================================================================

@router.callback_query(F.data == "download")
@handle_telegram_errors
async def callback_download(callback: CallbackQuery, sessions: SessionRegistry):
    controller = sessions.get(session_key(callback.message.chat.id))

    png = controller.download()
    if png is None:
        await callback.answer("Noch kein Zauberbild vorhanden.")
        return

    await callback.message.answer_document(
        document=BufferedInputFile(png, filename=DOWNLOAD_FILENAME),
        caption="💾 In voller Qualität zum Speichern."
    )
    await callback.answer()


# ============================================================================
# Callbacks retry / new_photo
# ============================================================================

@router.callback_query(F.data == "retry")
@handle_telegram_errors
async def callback_retry(callback: CallbackQuery, sessions: SessionRegistry):
    controller = sessions.get(session_key(callback.message.chat.id))

    state = controller.retry()

    if state is RequestState.READY:
        await callback.message.edit_text(
            "🔁 Gleiches Foto, neuer Versuch. Tippe auf <b>ZAUBERN</b>.",
            parse_mode="HTML",
            reply_markup=transform_keyboard()
        )
    elif state is RequestState.IDLE:
        await callback.message.edit_text("Schick mir ein Foto, um zu starten.")
    await callback.answer()


@router.callback_query(F.data == "new_photo")
@handle_telegram_errors
async def callback_new_photo(callback: CallbackQuery, sessions: SessionRegistry):
    telegram_id = callback.from_user.id
    controller = sessions.get(session_key(callback.message.chat.id))

    logger.info(f"🔚 User {telegram_id} chose a different photo")

    controller.reset()

    await safe_send_message(
        callback.message,
        "🖼️ Schick mir ein neues Foto: ein Haus, eine Person oder ein Spielzeug.",
        user_id=telegram_id
    )
    await callback.answer()
