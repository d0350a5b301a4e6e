import random
from typing import List, Optional, Sequence, Tuple

from core.errors import ValidationFailureError

GREETING = (
    "👋 Hi! I'm R1 AI Assistant. I can help you learn about our automation services, answer questions "
    "about pricing, or guide you through getting started. How can I assist you today?"
)

PRICING = (
    "Our pricing is based on IXP credits:\n\n"
    "💎 Founder's Suite: 75 IXP monthly - $297\n"
    "🚀 Growth Partner: 150 IXP monthly - $597\n"
    "⚡ Scale OS: 350 IXP monthly - $1197\n\n"
    "Each automation service costs different IXP amounts. Would you like to know more about specific services?"
)

# порядок важен: побеждает первый ключ, найденный подстрокой
PREDEFINED: Tuple[Tuple[str, str], ...] = (
    ("hello", "Hello! Welcome to R1 AI. I'm here to help you automate your business processes. "
              "What would you like to know?"),
    ("hi", "Hi there! 👋 Ready to revolutionize your business with AI automation? Ask me anything!"),
    ("pricing", PRICING),
    ("services", "We offer two main categories:\n\n"
                 "🏗️ **Foundation Services:**\n• Expense Tracking (15 IXP)\n• Bookkeeping (20 IXP)\n"
                 "• Payroll Processing (25 IXP)\n• Tax Return Prep (30 IXP)\n\n"
                 "🎯 **À La Carte Services:**\n• Marketing Campaigns (10 IXP)\n• Social Media Management (8 IXP)\n"
                 "• Email Campaigns (12 IXP)\n• SEO Optimization (15 IXP)\n\nWhich category interests you most?"),
    ("how it works", "R1 AI works in 3 simple steps:\n\n1️⃣ **Onboarding**: Tell us about your business\n"
                     "2️⃣ **Setup**: We configure automations for your needs\n"
                     "3️⃣ **Activate**: Your business runs on autopilot!\n\n"
                     "Our AI analyzes your business and recommends the best automation strategies. "
                     "Want to get started?"),
    ("demo", "I'd love to show you a demo! You can:\n\n📝 Fill out our quick onboarding form\n"
             "📞 Schedule a personalized call\n🎮 Try our interactive dashboard\n\n"
             "Which option sounds best to you?"),
    ("support", "I'm here to help! For technical support:\n\n💬 Chat with me for quick questions\n"
                "📧 Email: support@r1ai.com\n📞 Call: 1-800-R1-AI-HELP\n"
                "🕐 Hours: 24/7 AI support, human support 9AM-6PM EST\n\nWhat specific issue can I help you with?"),
    ("features", "R1 AI features include:\n\n🤖 **AI-Powered Automation**\n📊 **Business Intelligence Dashboard**\n"
                 "💰 **IXP Credit System**\n🔗 **Seamless Integrations**\n📈 **Performance Analytics**\n"
                 "🛡️ **Enterprise Security**\n\nWant details on any specific feature?"),
)

KEYWORD_GROUPS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("automat", "workflow"),
     "Automation is our specialty! 🤖 We can automate everything from expense tracking to marketing campaigns. "
     "Our AI learns your business patterns and optimizes processes automatically. "
     "What specific area would you like to automate?"),
    (("cost", "price", "expensive"), PRICING),
    (("start", "begin", "onboard"),
     "Getting started is easy! 🚀\n\n1. Sign up for a free account\n2. Complete our 5-minute business assessment\n"
     "3. Get personalized automation recommendations\n4. Activate your first automation\n\n"
     "Ready to begin your automation journey?"),
    (("business", "company"),
     "We work with businesses of all sizes! 🏢 From startups to enterprises, our AI adapts to your specific needs. "
     "We've helped companies save 40+ hours per week through intelligent automation. "
     "What type of business are you running?"),
    (("ai", "artificial intelligence"),
     "Our AI is designed specifically for business automation! 🧠 It learns from your data, predicts needs, "
     "and optimizes workflows automatically. Unlike generic AI, R1 AI understands business processes deeply. "
     "Want to see it in action?"),
)

FALLBACKS: Tuple[str, ...] = (
    "That's a great question! Let me connect you with our team for detailed information. "
    "You can schedule a call or fill out our onboarding form to get personalized assistance.",
    "I'd be happy to help! For specific questions like this, our human experts can provide the best guidance. "
    "Would you like to schedule a consultation?",
    "Thanks for asking! While I can help with general information, our specialists can give you detailed answers. "
    "Shall I help you get in touch with them?",
    "Interesting question! For the most accurate and up-to-date information, I recommend speaking with our team "
    "directly. Would you like me to help you schedule a call?",
)

QUICK_ACTIONS: Tuple[Tuple[str, str], ...] = (
    ("💰 View Pricing", "What are your pricing plans?"),
    ("🚀 Get Started", "How do I get started?"),
    ("🤖 Learn About AI", "Tell me about your AI features"),
    ("📞 Schedule Demo", "I want to see a demo"),
)


class ChatBot:
    """Ответы по ключевым словам, без NLP"""
    def __init__(self, rng: Optional[random.Random] = None,
                 predefined: Sequence[Tuple[str, str]] = PREDEFINED,
                 keyword_groups: Sequence[Tuple[Tuple[str, ...], str]] = KEYWORD_GROUPS,
                 fallbacks: Sequence[str] = FALLBACKS):
        self.rng = rng or random.Random()
        self.predefined = predefined
        self.keyword_groups = keyword_groups
        self.fallbacks = fallbacks

    def greeting(self) -> str:
        return GREETING

    def reply(self, message: str) -> str:
        text = (message or "").strip().lower()
        if not text:
            raise ValidationFailureError("Message is empty", field="message")
        for key, response in self.predefined:
            if key in text:
                return response
        for keywords, response in self.keyword_groups:
            if any(k in text for k in keywords):
                return response
        return self.rng.choice(list(self.fallbacks))

    @staticmethod
    def quick_actions() -> List[dict]:
        return [{"text": label, "prompt": prompt} for label, prompt in QUICK_ACTIONS]
