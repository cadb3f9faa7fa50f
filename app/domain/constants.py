"""
Centralized Constants for the Freelancer Reply Assistant

SINGLE SOURCE OF TRUTH for rule tables, keyword lists and enums.
All modules should import from here.

Rule tables are ordered: their order is the priority order used by the
content analyzer.
"""

from typing import Dict, List, Tuple, FrozenSet
from enum import Enum


# =============================================================================
# SHARED ENUMS
# =============================================================================

class TemplateCategory(str, Enum):
    """Categories a message template can belong to."""
    CLIENT_ONBOARDING = "client_onboarding"
    CUSTOM_OFFER = "custom_offer"
    REVISION_HANDLING = "revision_handling"
    DELIVERY = "delivery"
    FOLLOW_UP = "follow_up"
    UPSELLING = "upselling"
    REQUIREMENTS_GATHERING = "requirements_gathering"
    TIMELINE_MANAGEMENT = "timeline_management"
    PRICING_DISCUSSION = "pricing_discussion"
    ISSUE_RESOLUTION = "issue_resolution"
    RELATIONSHIP_BUILDING = "relationship_building"
    CUSTOM = "custom"


class ToneStyle(str, Enum):
    """Tone labels for templates."""
    PROFESSIONAL = "professional"
    WARM = "warm"
    CONSULTATIVE = "consultative"
    EFFICIENT = "efficient"
    FORMAL = "formal"
    COLLABORATIVE = "collaborative"
    PREMIUM = "premium"


class ProjectComplexity(str, Enum):
    """Project complexity levels."""
    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"


class UploadStatus(str, Enum):
    """Lifecycle of a bulk template upload session."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# CONTENT ANALYZER DEFAULTS
# =============================================================================

DEFAULT_CATEGORY = TemplateCategory.CUSTOM.value
DEFAULT_TONE = ToneStyle.PROFESSIONAL.value
DEFAULT_COMPLEXITY = ProjectComplexity.STANDARD.value
DEFAULT_CLIENT_TYPE = "business"
DEFAULT_MESSAGE_TYPE = TemplateCategory.CUSTOM_OFFER.value

MAX_KEYWORDS: int = 12
MIN_KEYWORD_LENGTH: int = 4  # tokens must be longer than 3 characters


# =============================================================================
# STOPWORDS
# =============================================================================
# Closed list of function words and pronouns skipped by keyword extraction.
# Compared against the lower-cased token.

STOPWORDS: FrozenSet[str] = frozenset([
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "can", "this", "that", "these",
    "those", "i", "you", "he", "she", "it", "we", "they", "me", "him",
    "her", "us", "them", "your", "from", "their", "there", "about",
])


# =============================================================================
# CATEGORY RULES (weighted, highest total wins)
# =============================================================================
# (category, pattern, weight). A category may appear more than once; every
# matching rule adds its weight. Ties go to the category declared first.

CATEGORY_RULES: List[Tuple[str, str, int]] = [
    ("client_onboarding", r"\b(welcome|thanks? (you )?for choosing|excited to (work|start))\b", 3),
    ("client_onboarding", r"\b(hello|greetings|onboarding|get(ting)? started|kick[- ]?off)\b", 2),
    ("custom_offer", r"\b(offer|proposal|quote)\b", 3),
    ("custom_offer", r"\b(price|pricing|investment|budget|cost)\b", 2),
    ("revision_handling", r"\b(revision|revisions|revise|revised)\b", 3),
    ("revision_handling", r"\b(feedback|changes|adjustments?|modif(y|ication|ications))\b", 2),
    ("delivery", r"\b(delivery|delivered|completed)\b", 3),
    ("delivery", r"\b(final (files?|version)|finished|ready for review)\b", 2),
    ("follow_up", r"\b(follow(ing)?[- ]?up|checking in|check in)\b", 3),
    ("follow_up", r"\b(reminder|haven't heard|touch base)\b", 2),
    ("upselling", r"\b(upgrade|add[- ]?ons?|premium package|extra (features?|services?))\b", 3),
    ("upselling", r"\b(bonus|also offer|extended support)\b", 2),
    ("requirements_gathering", r"\b(requirements?|specifications?|scope)\b", 3),
    ("requirements_gathering", r"\b(questions?|clarify|clarification|could you (share|provide))\b", 2),
]

CATEGORY_ORDER: List[str] = [
    "client_onboarding",
    "custom_offer",
    "revision_handling",
    "delivery",
    "follow_up",
    "upselling",
    "requirements_gathering",
]


# =============================================================================
# TONE RULES (first match wins)
# =============================================================================

TONE_RULES: List[Tuple[str, str]] = [
    ("warm", r"\b(excited|thrilled|amazing|delighted|love)\b|!"),
    ("consultative", r"\b(strategic|strategy|analysis|analy[sz]ed?|recommend(ed|ation)?s?)\b"),
    ("efficient", r"\b(quickly|efficient(ly)?|ready|asap|right away)\b"),
    ("formal", r"\b(dear|sincerely|kindly|hereby|respectfully)\b"),
    ("collaborative", r"\b(together|collaborat\w*|partner(ship)?|let's)\b"),
]


# =============================================================================
# COMPLEXITY RULES (complex checked before simple)
# =============================================================================

COMPLEXITY_RULES: List[Tuple[str, str]] = [
    ("complex", r"\b(complex|comprehensive|enterprise|multi[- ]?phase|integrations?|architecture|advanced|large[- ]scale)\b"),
    ("simple", r"\b(simple|basic|small|minor|straightforward|one[- ]page|quick fix)\b"),
]


# =============================================================================
# CLIENT TYPE RULES (first match wins)
# =============================================================================

CLIENT_TYPE_RULES: List[Tuple[str, str]] = [
    ("startup", r"\b(startups?|start-ups?|founders?|mvp|early[- ]stage)\b"),
    ("enterprise", r"\b(enterprises?|corporations?|corporate|stakeholders|compliance)\b"),
    ("individual", r"\b(personal|individual|myself|my own|hobby)\b"),
    ("agency", r"\b(agency|agencies|white[- ]label|our clients)\b"),
]


# =============================================================================
# REPLY GENERATION
# =============================================================================

FALLBACK_REPLY: str = (
    "Thank you for your message! I understand your requirements and I'm here to help. "
    "Let me review the details and get back to you with a comprehensive response shortly."
)

SYSTEM_ROLE: str = (
    "You are a professional Fiverr assistant helping to craft responses to client messages."
)

MARKETPLACE_CONTEXT: List[str] = [
    "You're helping a freelancer respond to clients professionally",
    "Responses must be policy-compliant and maintain professional tone",
    "Focus on clear communication, setting expectations, and building trust",
]

REPLY_GUIDELINES: List[str] = [
    "Be professional but warm and approachable",
    "Address client concerns directly",
    "Set clear expectations for deliverables and timelines",
    "Suggest next steps when appropriate",
    "Keep responses concise but complete",
    "Use a confident, expert tone",
]

EXEMPLAR_MESSAGE_CHARS: int = 100
EXEMPLAR_RESPONSE_CHARS: int = 300
TEMPLATE_EXCERPT_CHARS: int = 400


# =============================================================================
# IMPORT FORMATS
# =============================================================================

SAMPLE_TEMPLATES_CSV: str = """title,content,category,tone_style,industry_tags,client_type,project_complexity,matching_keywords
"Welcome Message","Thank you for choosing our services! We're excited to work with you.","client_onboarding","professional","web-development,design","business","standard","welcome,thank you,excited"
"Custom Offer Template","Based on your requirements, here's my custom proposal...","custom_offer","consultative","marketing","business","complex","proposal,custom,requirements"
"Revision Response","Thank you for your feedback. I'll implement the requested changes...","revision_handling","collaborative","any","any","standard","feedback,changes,revision"
"""


# =============================================================================
# CURATED STARTER LIBRARY
# =============================================================================
# Global, read-only templates users can copy into their own collection.

CURATED_TEMPLATES: List[Dict] = [
    {
        "title": "Professional Welcome - Web Development",
        "body": (
            "Hi {{client_name}},\n\n"
            "Thank you for choosing my web development services! I'm excited to work on "
            "{{project_name}} with you.\n\n"
            "To ensure we deliver exactly what you envision, I've prepared a quick project checklist:\n"
            "- Project Requirements: {{requirements}}\n"
            "- Timeline: {{timeline}}\n"
            "- Communication: I'll provide updates every {{update_frequency}}\n\n"
            "I'll start working on your project immediately and deliver the first milestone by "
            "{{first_milestone_date}}.\n\n"
            "Looking forward to creating something amazing together!\n\n"
            "Best regards,\n{{freelancer_name}}"
        ),
        "category": "client_onboarding",
        "tone_style": "professional",
        "industry_tags": ["web-development", "programming"],
        "client_type": "business",
        "project_complexity": "standard",
        "matching_keywords": ["welcome", "onboarding", "requirements", "timeline", "project start"],
        "usage_description": "Professional welcome message for web development clients with project setup",
    },
    {
        "title": "Warm Welcome - Design Projects",
        "body": (
            "Hello {{client_name}}!\n\n"
            "Welcome to our creative journey together! I'm thrilled to work on {{project_name}} "
            "and bring your vision to life.\n\n"
            "Here's what happens next:\n"
            "- Discovery Call: Let's discuss your brand, style preferences, and goals\n"
            "- Design Concepts: I'll create {{concept_count}} initial concepts for your review\n"
            "- Refinement: We'll perfect your chosen design together\n"
            "- Final Delivery: Complete files ready for implementation\n\n"
            "Ready to get started?\n\n"
            "Creative regards,\n{{freelancer_name}}"
        ),
        "category": "client_onboarding",
        "tone_style": "warm",
        "industry_tags": ["graphic-design", "branding"],
        "client_type": "creative",
        "project_complexity": "standard",
        "matching_keywords": ["welcome", "creative", "design", "brand", "concepts"],
        "usage_description": "Warm and creative welcome for design and branding clients",
    },
    {
        "title": "Premium Web Development Offer",
        "body": (
            "Hi {{client_name}},\n\n"
            "Based on your requirements for {{project_description}}, I've crafted a comprehensive "
            "solution that will exceed your expectations.\n\n"
            "What You'll Get:\n"
            "- Custom responsive website with {{features}}\n"
            "- {{pages_count}} professionally designed pages\n"
            "- SEO optimization for better search rankings\n"
            "- {{revisions_count}} rounds of revisions included\n"
            "- 30 days of post-launch support\n\n"
            "Timeline: {{delivery_time}} days\n"
            "Investment: ${{price}}\n\n"
            "This offer is valid for {{offer_validity}}. Ready to get started? Click \"Accept Offer\" "
            "and let's bring your vision to life!\n\n"
            "{{freelancer_name}}"
        ),
        "category": "custom_offer",
        "tone_style": "premium",
        "industry_tags": ["web-development"],
        "client_type": "business",
        "project_complexity": "complex",
        "matching_keywords": ["custom offer", "web development", "premium", "features", "timeline"],
        "usage_description": "Premium custom offer template for complex web development projects",
    },
    {
        "title": "Consultative Marketing Offer",
        "body": (
            "Hello {{client_name}},\n\n"
            "Thank you for sharing your marketing challenges with me. I've analyzed your needs and "
            "developed a strategic approach that will drive real results.\n\n"
            "Situation Analysis:\n{{current_situation}}\n\n"
            "Recommended Strategy:\n{{strategy_overview}}\n\n"
            "What's Included:\n"
            "- {{deliverable_1}}\n"
            "- {{deliverable_2}}\n"
            "- Performance tracking and reporting\n"
            "- {{consultation_hours}} hours of strategic consultation\n\n"
            "Timeline: {{project_duration}}\n"
            "Investment: ${{total_price}}\n\n"
            "Shall we schedule a brief call to discuss the details?\n\n"
            "Best regards,\n{{freelancer_name}}"
        ),
        "category": "custom_offer",
        "tone_style": "consultative",
        "industry_tags": ["digital-marketing", "strategy"],
        "client_type": "business",
        "project_complexity": "complex",
        "matching_keywords": ["marketing", "strategy", "consultation", "analysis", "results"],
        "usage_description": "Strategic consulting approach for marketing and business development projects",
    },
    {
        "title": "Collaborative Revision Response",
        "body": (
            "Hi {{client_name}},\n\n"
            "Thank you for your detailed feedback on {{deliverable_name}}. I appreciate you taking "
            "the time to review everything thoroughly.\n\n"
            "I understand you'd like to adjust:\n{{revision_points}}\n\n"
            "I'll implement these changes while maintaining the core strength of our design:\n"
            "{{revision_plan}}\n\n"
            "I'll have the revised version ready by {{revision_deadline}}, which keeps us on track "
            "for your {{final_deadline}} launch date.\n\n"
            "Best,\n{{freelancer_name}}"
        ),
        "category": "revision_handling",
        "tone_style": "collaborative",
        "industry_tags": ["design", "development"],
        "client_type": "any",
        "project_complexity": "standard",
        "matching_keywords": ["revision", "feedback", "collaboration", "timeline", "refinement"],
        "usage_description": "Collaborative approach to handling client revisions and feedback",
    },
    {
        "title": "Efficient Revision Management",
        "body": (
            "Hello {{client_name}},\n\n"
            "Thanks for the revision request on {{project_name}}. I've reviewed your feedback and "
            "here's the action plan:\n\n"
            "- {{change_count}} changes requested\n"
            "- Estimated time: {{estimated_hours}} hours\n"
            "- Delivery: {{delivery_date}}\n\n"
            "Changes Breakdown:\n{{detailed_changes}}\n\n"
            "If you need any clarifications or have additional requests, please let me know before "
            "I begin.\n\n"
            "{{freelancer_name}}"
        ),
        "category": "revision_handling",
        "tone_style": "efficient",
        "industry_tags": ["any"],
        "client_type": "any",
        "project_complexity": "standard",
        "matching_keywords": ["revision", "changes", "timeline", "efficient", "delivery"],
        "usage_description": "Streamlined and efficient revision handling for time-conscious clients",
    },
]
