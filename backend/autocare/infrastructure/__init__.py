"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .sendgrid_email import SendGridEmailChannel
from .twilio_sms import TwilioSmsChannel

__all__ = ['SendGridEmailChannel', 'TwilioSmsChannel']
