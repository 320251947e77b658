from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Texts:
    help: str
    reminder_header: str
    reminder_body: str
    reminder_time: str
    untitled: str
    event_list_header: str
    no_events: str
    events_error: str
    status_started: str
    status_soon: str
    status_minutes: str
    status_hours: str
    status_days: str


MESSAGES: Dict[str, Texts] = {
    "ru": Texts(
        help=(
            "🤖 <b>Google Calendar Bot</b>\n\n"
            "<b>Доступные команды:</b>\n"
            "/events - показать ближайшие события\n"
            "/help - показать эту справку\n\n"
            "Бот автоматически уведомляет о предстоящих событиях за {lead} минут."
        ),
        reminder_header="⏰ <b>Напоминание</b>",
        reminder_body="Через {minutes} мин начнётся: <b>{title}</b>",
        reminder_time="🗓 Время: {time}",
        untitled="Без названия",
        event_list_header="📅 <b>Ближайшие события:</b>",
        no_events="📅 У вас нет предстоящих событий.",
        events_error="❌ Ошибка при получении событий. Попробуйте позже.",
        status_started="🔴 Прошло",
        status_soon="⚠️ Скоро",
        status_minutes="🟡 Через {value} мин",
        status_hours="🟢 Через {value} ч",
        status_days="🔵 Через {value} дн",
    ),
    "en": Texts(
        help=(
            "🤖 <b>Google Calendar Bot</b>\n\n"
            "<b>Available commands:</b>\n"
            "/events - show upcoming events\n"
            "/help - show this help\n\n"
            "The bot reminds you about upcoming events {lead} minutes in advance."
        ),
        reminder_header="⏰ <b>Reminder</b>",
        reminder_body="Starting in {minutes} min: <b>{title}</b>",
        reminder_time="🗓 Time: {time}",
        untitled="Untitled",
        event_list_header="📅 <b>Upcoming events:</b>",
        no_events="📅 You have no upcoming events.",
        events_error="❌ Failed to fetch events. Please try again later.",
        status_started="🔴 Started",
        status_soon="⚠️ Soon",
        status_minutes="🟡 In {value} min",
        status_hours="🟢 In {value} h",
        status_days="🔵 In {value} d",
    ),
}


def get_text(language: str, key: str, **kwargs: object) -> str:
    texts = MESSAGES.get(language, MESSAGES["ru"])
    value = getattr(texts, key)
    if kwargs:
        return value.format(**kwargs)
    return value
