from enum import StrEnum


class FunctionName(StrEnum):
    SCHEDULE_CALL = "scheduleCall"
    SET_REMINDER = "setReminder"
    SEND_MESSAGE = "sendMessage"
    SEARCH_MESSAGES = "searchMessages"


class SelectionType(StrEnum):
    CONTACT = "contact"
    TIME = "time"
    ACTION = "action"
    PARAMETER = "parameter"
    GENERIC = "generic"


class EventType(StrEnum):
    TRAINING = "training"
    CALL = "call"
    ADHOC = "adhoc"


class ResultSentinel(StrEnum):
    SELECTION_REQUIRED = "SELECTION_REQUIRED"
    CONFLICT_DETECTED = "CONFLICT_DETECTED"


class ParamKey(StrEnum):
    CLIENT_NAME = "clientName"
    CLIENT_ID = "clientId"
    CHAT_ID = "chatId"
    DATE_TIME = "dateTime"
    TIMEZONE = "timezone"
