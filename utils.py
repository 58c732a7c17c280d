import logging

from markupsafe import escape

activity_logger = logging.getLogger("activity")

LOG_LEVELS = {
    "info": (logging.INFO, "ℹ️"),
    "success": (logging.INFO, "✅"),
    "warning": (logging.WARNING, "⚠️"),
    "error": (logging.ERROR, "❌"),
}


def log(level, message):
    """Activity sink: one line per auth attempt, denial, validation failure or mutation."""
    levelno, marker = LOG_LEVELS.get(level, (logging.INFO, "📌"))
    activity_logger.log(levelno, "%s %s", marker, message)


def escape_html(text):
    """Escape user text before it reaches anything that renders HTML."""
    if text is None:
        return ""
    return str(escape(text))


def truncate_text(text, max_length=50):
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def capitalize(text):
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()
