from .email_utils import send_email_global

__all__ = ['send_email_global']
