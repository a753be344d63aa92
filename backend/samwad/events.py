"""
Real-time event names exchanged over Socket.IO.
"""


class ClientEvent:
    """Events sent by a client to the server."""
    REGISTER_IDENTITY = "register_identity"
    JOIN_QUEUE = "join_queue"
    LEAVE_QUEUE = "leave_queue"
    GET_QUEUE = "get_queue"
    GET_STATUS = "get_status"
    INVITE = "invite"
    SIGNALING_OFFER = "signaling_offer"
    SIGNALING_ANSWER = "signaling_answer"
    SIGNALING_CANDIDATE = "signaling_candidate"
    SHARE_MEETING_LINK = "share_meeting_link"
    REQUEST_MEETING_LINK = "request_meeting_link"
    CHAT_MESSAGE = "chat_message"
    END_CALL = "end_call"
    SUBMIT_RATING = "submit_rating"
    GET_LOGS = "get_logs"
    GET_GRIEVANCES = "get_grievances"
    UPDATE_GRIEVANCE = "update_grievance"
    GET_MY_HISTORY = "get_my_history"
    SET_WAIT_OVERRIDE = "set_wait_override"


class ServerEvent:
    """Events pushed by the server to clients."""
    REGISTRATION_ACK = "registration_ack"
    QUEUE_UPDATE = "queue_update"
    QUEUE_UPDATE_OFFICIAL = "queue_update_official"
    STATUS_UPDATE = "status_update"
    INCOMING_CALL = "incoming_call"
    SIGNALING_OFFER = "signaling_offer"
    SIGNALING_ANSWER = "signaling_answer"
    SIGNALING_CANDIDATE = "signaling_candidate"
    SHARE_MEETING_LINK = "share_meeting_link"
    REQUEST_MEETING_LINK = "request_meeting_link"
    CHAT_MESSAGE = "chat_message"
    CALL_ENDED = "call_ended"
    LOGS_UPDATE = "logs_update"
    GRIEVANCE_UPDATE = "grievance_update"
    HISTORY_UPDATE = "history_update"
    WAIT_OVERRIDE_UPDATED = "wait_override_updated"


SIGNALING_EVENTS = (
    ClientEvent.SIGNALING_OFFER,
    ClientEvent.SIGNALING_ANSWER,
    ClientEvent.SIGNALING_CANDIDATE,
)
