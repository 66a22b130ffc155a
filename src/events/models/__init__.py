from .event import Event
from .registration import Registration, generate_ticket_code

__all__ = ["Event", "Registration", "generate_ticket_code"]
