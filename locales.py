"""
Language support for PocketCalc
Supplies the decimal separator and translated UI strings per language code
"""
import config

# language code -> decimal separator used on the display
DECIMAL_SEPARATORS = {
    "en": ".",
    "hi": ".",
    "de": ",",
    "fr": ",",
    "ru": ",",
}

TRANSLATIONS = {
    "de": {
        "Error": "Fehler",
    },
    "fr": {
        "Error": "Erreur",
    },
    "hi": {
        "Error": "त्रुटि",
    },
    "ru": {
        "Error": "Ошибка",
    },
}


def normalize_language(lang_code):
    """Map 'ru-RU', 'ru_RU' or 'RU' to the base code 'ru'"""
    if not lang_code:
        return config.DEFAULT_LANGUAGE
    return lang_code.replace("_", "-").split("-")[0].lower()


def get_decimal_separator(lang_code=None):
    """Return the decimal separator for a language, '.' when unknown"""
    return DECIMAL_SEPARATORS.get(normalize_language(lang_code), ".")


def get_translator(lang_code=None):
    """Return a function translating English UI strings into the given language"""
    table = TRANSLATIONS.get(normalize_language(lang_code), {})

    def tr(text):
        return table.get(text, text)

    return tr


def supported_languages():
    """List language codes with a known decimal separator"""
    return sorted(DECIMAL_SEPARATORS)
