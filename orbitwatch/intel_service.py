"""
Intelligence report service
Asks an external chat-completion model for a short tactical summary of a
target, and tracks in-flight requests so that a reply for a target that is
no longer selected is discarded.
"""

import logging
import os
import threading
from enum import Enum

import openai

from orbitwatch.config import INTEL

logger = logging.getLogger(__name__)

MISSING_KEY_TEXT = "API Key missing. Cannot generate analysis."
UPLINK_FAILED_TEXT = "Unable to establish uplink with Intelligence Core."
EMPTY_REPLY_TEXT = "Analysis failed."


class Language(Enum):
    EN = 'EN'
    CN = 'CN'
    JP = 'JP'


LANGUAGE_NAMES = {
    Language.EN: 'English',
    Language.CN: 'Chinese',
    Language.JP: 'Japanese',
}


def build_prompt(target, language):
    e = target.elements
    return (
        "You are an advanced AI orbital defense system.\n"
        f"Analyze the following space target and provide a concise tactical situation "
        f"report (max {INTEL['max_words']} words).\n"
        "Tone: Military, Scientific, High-tech, Urgent.\n"
        f"Output Language: {LANGUAGE_NAMES[language]}.\n\n"
        "Target Data:\n"
        f"- Name: {target.name}\n"
        f"- Type: {target.type.value}\n"
        f"- Risk Level: {target.risk.value}\n"
        f"- Orbital Eccentricity: {e.eccentricity}\n"
        f"- Inclination: {e.inclination}\n\n"
        "Provide:\n"
        "1. Brief orbital description.\n"
        "2. Potential threats or strategic importance.\n"
    )


def generate_target_analysis(target, language=Language.EN, client=None):
    """
    Request a report for one target. Never raises.

    Args:
        target: Target to describe
        language: Language of the reply
        client: openai.OpenAI-compatible client (built from the environment if None)

    Returns:
        Report text, or one of the fixed fallback messages
    """
    api_key = None
    if client is None:
        api_key = os.environ.get(INTEL["api_key_env"])
        if not api_key:
            return MISSING_KEY_TEXT

    try:
        if client is None:
            client = openai.OpenAI(api_key=api_key, timeout=INTEL["timeout_s"])
        res = client.chat.completions.create(
            model=INTEL["model"],
            messages=[{"role": "user", "content": build_prompt(target, language)}],
        )
        text = res.choices[0].message.content
    except Exception as exc:
        logger.error(f"Intelligence request failed for {target.id}: {exc}")
        return UPLINK_FAILED_TEXT

    text = (text or '').strip()
    return text or EMPTY_REPLY_TEXT


def _daemon_submit(job):
    threading.Thread(target=job, daemon=True).start()


class IntelReportController:
    """
    Tracks the report for the currently selected target.

    Each request gets a new token; only the reply carrying the current token
    is accepted. ``dispatch`` moves the reply back onto the UI thread (the GUI
    passes a Qt signal emit), ``submit`` runs the blocking call.
    """

    def __init__(self, generate=generate_target_analysis, submit=_daemon_submit,
                 dispatch=None, on_update=None):
        self._generate = generate
        self._submit = submit
        self._dispatch = dispatch or (lambda token, text: self._deliver(token, text))
        self._on_update = on_update
        self._token = 0
        self.target_id = None
        self.loading = False
        self.text = ''

    @property
    def token(self):
        return self._token

    def request(self, target, language=Language.EN):
        """Start a report for target, superseding any request still in flight."""
        self._token += 1
        token = self._token
        self.target_id = target.id
        self.loading = True
        self.text = ''
        self._notify()

        def job():
            try:
                text = self._generate(target, language)
            except Exception as exc:
                logger.error(f"Intelligence job failed for {target.id}: {exc}")
                text = UPLINK_FAILED_TEXT
            self._dispatch(token, text)

        self._submit(job)
        return token

    def deliver(self, token, text):
        """Accept a reply on the UI thread. Returns False if it was stale."""
        return self._deliver(token, text)

    def _deliver(self, token, text):
        if token != self._token:
            logger.info(f"Dropped stale intelligence report (token {token})")
            return False
        self.loading = False
        self.text = text
        self._notify()
        return True

    def clear(self):
        """Forget the current target; any in-flight reply becomes stale."""
        self._token += 1
        self.target_id = None
        self.loading = False
        self.text = ''
        self._notify()

    def _notify(self):
        if self._on_update is not None:
            self._on_update(self)
