import random

import pytest

from core.errors import ValidationFailureError
from core.use_cases.chat_use_cases import FALLBACKS, GREETING, PREDEFINED, PRICING, ChatBot

RESPONSES = dict(PREDEFINED)


@pytest.fixture
def bot():
    return ChatBot(rng=random.Random(7))


def test_predefined_keys_match_case_insensitively(bot):
    assert bot.reply("HELLO there") == RESPONSES["hello"]
    assert bot.reply("Tell me about pricing") == PRICING
    assert bot.reply("Can I see a DEMO?") == RESPONSES["demo"]


def test_first_key_in_order_wins(bot):
    # "hello" проверяется раньше "pricing"
    assert bot.reply("hello, what about pricing?") == RESPONSES["hello"]
    # подстрока: "this" содержит "hi"
    assert bot.reply("Is this thing on?") == RESPONSES["hi"]


def test_keyword_groups(bot):
    assert bot.reply("Can you automate my invoices?").startswith("Automation is our specialty!")
    assert bot.reply("Is it expensive?") == PRICING
    assert bot.reply("where do I begin").startswith("Getting started is easy!")
    assert bot.reply("I run a small company").startswith("We work with businesses of all sizes!")
    assert bot.reply("Tell me about AI").startswith("Our AI is designed specifically")


def test_fallback_uses_injected_rng():
    expected = random.Random(3).choice(list(FALLBACKS))
    assert ChatBot(rng=random.Random(3)).reply("qwerty") == expected


def test_empty_message_is_rejected(bot):
    with pytest.raises(ValidationFailureError):
        bot.reply("   ")


def test_greeting_and_quick_actions(bot):
    assert bot.greeting() == GREETING
    actions = bot.quick_actions()
    assert len(actions) == 4
    assert actions[0] == {"text": "💰 View Pricing", "prompt": "What are your pricing plans?"}
