"""
Guidance chatbot backed by the Gemini generateContent REST endpoint.

The bot answers campus questions and points users at the right page. It
keeps no state of its own: the view passes the recent history from the
session on every call.
"""

import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

FALLBACK_REPLY = (
    "Sorry, I can't answer right now. You can browse Clubs, Events, "
    "Opportunities, Projects and Tutorials from the navigation bar."
)

SITE_ROUTES = [
    ("Live Feed", "/feed"),
    ("Clubs", "/clubs"),
    ("Events", "/events"),
    ("Opportunities", "/opportunities"),
    ("People", "/people"),
    ("Portfolios", "/portfolios"),
    ("Projects", "/projects"),
    ("Tutorials", "/tutorials"),
    ("Your Profile", "/profile"),
]


def build_system_prompt(base_url):
    routes = "\n".join(f"- {label}: [{label}]({base_url}{path})" for label, path in SITE_ROUTES)
    return (
        "You are a professional and helpful guidance chatbot for a campus "
        "network web application. Answer the user's question in a few "
        "clear paragraphs, then point them to the most relevant page using "
        "one of these links:\n"
        f"{routes}\n"
        "If you do not have enough information to answer, ask a follow-up question."
    )


def ask(message, history, base_url=''):
    """
    Send one user message and return the bot's reply text.

    Args:
        message (str): New user message
        history (list[dict]): Previous turns, [{'sender': 'user'|'bot', 'text': ...}]
        base_url (str): Scheme and host used to build absolute page links

    Returns:
        str: Reply text, or FALLBACK_REPLY when the API is not configured
        or the call fails
    """
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        return FALLBACK_REPLY

    transcript = "\n".join(f"{turn['sender']}: {turn['text']}" for turn in history)
    prompt = f"{build_system_prompt(base_url)}\n\n{transcript}\nuser: {message}"

    try:
        response = requests.post(
            GEMINI_ENDPOINT.format(model=settings.GEMINI_MODEL),
            params={'key': api_key},
            json={'contents': [{'parts': [{'text': prompt}]}]},
            timeout=settings.CHATBOT_TIMEOUT,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        data = response.json()
        return data['candidates'][0]['content']['parts'][0]['text']
    except requests.RequestException as exc:
        logger.warning(f"Gemini API error: {exc}")
    except (KeyError, IndexError, ValueError) as exc:
        logger.warning(f"Unexpected Gemini response: {exc}")
    return FALLBACK_REPLY
