import logging
from aiogram import Router
from aiogram.types import Message
from aiogram.filters import Command, CommandStart

from alice_magic.controller import SessionRegistry
from alice_magic.errors import REMEDIATION_STEPS
from bot.handlers.photo_processing import session_key
from bot.utils.formatters import safe_send_message

logger = logging.getLogger(__name__)
router = Router()


@router.message(CommandStart())
async def start_command(message: Message, sessions: SessionRegistry):
    """
    Handles the /start command: fresh session, ask for a photo.
    """
    sessions.get(session_key(message.chat.id)).reset()

    user_name = message.from_user.first_name
    text = (
        f"Hallo, {user_name}! ✨\n\n"
        "Ich bin <b>Alice</b> und verwandle deine Fotos in Pixar-Zauberbilder.\n\n"
        "Schick mir ein Foto: ein Haus, eine Person oder ein Spielzeug."
    )

    await safe_send_message(
        message,
        text,
        user_id=message.from_user.id,
        parse_mode="HTML"
    )


@router.message(Command("help"))
async def help_command(message: Message):
    """
    Handles the /help command.
    """
    text = (
        "<b>Hilfe</b>\n\n"
        "1. Schick ein Foto\n"
        "2. Tippe auf ZAUBERN\n"
        "3. Mit SPEICHERN bekommst du das Bild als Datei\n\n"
        "<b>Meldung „API-Key fehlt“?</b>\n"
        f"{REMEDIATION_STEPS}"
    )
    await safe_send_message(
        message,
        text,
        user_id=message.from_user.id,
        parse_mode="HTML"
    )
