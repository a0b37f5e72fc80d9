from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def transform_keyboard() -> InlineKeyboardMarkup:
    """
    Shown once a photo is loaded.
    """
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="✨ ZAUBERN", callback_data="transform")],
        [InlineKeyboardButton(text="🖼️ Anderes Foto", callback_data="new_photo")]
    ])


def result_keyboard() -> InlineKeyboardMarkup:
    """The keyboard under a finished cartoon."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="💾 SPEICHERN", callback_data="download")],
        [InlineKeyboardButton(text="🔄 NEUER ZAUBER", callback_data="new_photo")]
    ])


def failure_keyboard() -> InlineKeyboardMarkup:
    """The keyboard after a failed transformation."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 Nochmal", callback_data="retry")],
        [InlineKeyboardButton(text="🖼️ Anderes Foto", callback_data="new_photo")]
    ])
