"""Built-in bot definitions.

Every bot is one configuration record: a rule table (or none), a response
catalog and a persistence contract. The records below use the same plain
dict shape a JSON config would, and go through ``build_rule_table`` /
``build_catalog`` like any external config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from core.catalog import ResponseCatalog, build_catalog
from core.rules_engine import FIRST_MATCH, MULTI_MATCH, RuleTable, build_rule_table

# Conversation policies
PER_SESSION = "per_session"
REUSE = "reuse"
NO_CONVERSATION = "none"

TRIPLE_M = "triple_m"
MICRO_THERAPY = "micro_therapy"
COGNITIVE_DISTORTION = "cognitive_distortion"
SLEEP_GUARDIAN = "sleep_guardian"
GRATITUDE = "gratitude"
FACE_DETECTION = "face_detection"
VENTING_SHREDDER = "venting_shredder"

NEUTRAL_EMOTION = "neutral"
DAILY_CHALLENGE = "daily_challenge"


@dataclass(frozen=True)
class BotDefinition:
    """One configured (rule table, response catalog, persistence) triple."""

    bot_type: str
    name: str
    catalog: ResponseCatalog
    table: Optional[RuleTable] = None
    conversation_policy: str = NO_CONVERSATION
    title: Optional[str] = None
    processing_delay: float = 0.0
    greeting: Optional[str] = None


@dataclass(frozen=True)
class DistortionInfo:
    category: str
    name: str
    description: str
    example: str


class BotRegistry:
    """Bot definitions keyed by bot type."""

    def __init__(self, bots: Iterable[BotDefinition]) -> None:
        self._bots = {bot.bot_type: bot for bot in bots}

    def get(self, bot_type: str) -> BotDefinition:
        try:
            return self._bots[bot_type]
        except KeyError:
            raise KeyError(f"Unknown bot type: {bot_type}") from None

    def find(self, bot_type: Optional[str]) -> Optional[BotDefinition]:
        return self._bots.get(bot_type) if bot_type else None

    def __contains__(self, bot_type: object) -> bool:
        return bot_type in self._bots

    def __iter__(self):
        return iter(self._bots.values())

    @property
    def bot_types(self) -> list[str]:
        return list(self._bots)


# ---------------------------------------------------------------------------
# Mood tracker (Music, Mindfulness, Mood)
# ---------------------------------------------------------------------------

MOODS = ("happy", "sad", "anxious", "stressed", "calm", "energetic")

MOOD_PLAYLISTS: Mapping[str, tuple[str, ...]] = {
    "happy": ("Upbeat Pop Playlist", "Feel Good Indie", "Energetic Dance"),
    "sad": ("Emotional Ballads", "Soothing Piano", "Healing Melodies"),
    "anxious": ("Calming Nature Sounds", "Ambient Relaxation", "Peaceful Instrumental"),
    "stressed": ("Stress Relief Meditation", "Gentle Classical", "Ocean Waves"),
    "calm": ("Mindful Meditation", "Soft Jazz", "Peaceful Guitar"),
    "energetic": ("Workout Beats", "Motivational Mix", "High Energy Playlist"),
}

MINDFULNESS_EXERCISES: Mapping[str, str] = {
    "happy": "Gratitude Meditation: Take 5 minutes to reflect on three things that make you happy right now.",
    "sad": (
        "Self-Compassion Exercise: Place your hand on your heart and speak kindly to yourself, "
        "acknowledging your feelings."
    ),
    "anxious": "4-7-8 Breathing: Breathe in for 4 counts, hold for 7, exhale for 8. Repeat 4 times.",
    "stressed": "Body Scan: Close your eyes and mentally scan from head to toe, releasing tension in each area.",
    "calm": "Mindful Walking: Take a slow 10-minute walk, focusing on each step and your surroundings.",
    "energetic": "Movement Meditation: Dance freely for 5 minutes, expressing your energy through movement.",
}

TRIPLE_M_TABLE = {
    "mode": FIRST_MATCH,
    "default": "unsure",
    "rules": [
        {"category": "sad", "keywords": ["sad", "down"]},
        {"category": "anxious", "keywords": ["anxious", "nervous"]},
        {"category": "stressed", "keywords": ["stressed", "stress"]},
        {"category": "happy", "keywords": ["happy", "joyful", "glad"]},
        {"category": "calm", "keywords": ["calm", "relaxed", "peaceful"]},
        {"category": "energetic", "keywords": ["energetic", "energized", "pumped"]},
    ],
}

TRIPLE_M_CATALOG = {
    "responses": {
        "sad": (
            "I hear that you're feeling sad. Music can be a powerful mood lifter. Try listening to "
            "something soothing or uplifting. Would you like me to recommend some calming exercises?"
        ),
        "anxious": (
            "Anxiety can feel overwhelming. Let's ground you with the 4-7-8 breathing: Breathe in for 4, "
            "hold for 7, out for 8. Pair this with some calming ambient music."
        ),
        "stressed": MINDFULNESS_EXERCISES["stressed"],
        "happy": MINDFULNESS_EXERCISES["happy"],
        "calm": MINDFULNESS_EXERCISES["calm"],
        "energetic": MINDFULNESS_EXERCISES["energetic"],
        "unsure": (
            "Music and mindfulness work together beautifully. What mood are you in right now? "
            "I can help you find the right combination."
        ),
    },
}

# ---------------------------------------------------------------------------
# 60-second micro support
# ---------------------------------------------------------------------------

MICRO_THERAPY_TABLE = {
    "mode": FIRST_MATCH,
    "default": "default",
    "rules": [
        {"category": "anxious", "keywords": ["anxious"]},
        {"category": "stressed", "keywords": ["stressed"]},
        {"category": "sad", "keywords": ["sad"]},
        {"category": "overwhelmed", "keywords": ["overwhelmed"]},
        {"category": "lonely", "keywords": ["lonely"]},
        # Shared with the classification service, so "tired" gets the exhausted reply
        # here too instead of the default one.
        {"category": "exhausted", "keywords": ["tired", "exhausted"]},
    ],
}

MICRO_THERAPY_CATALOG = {
    "responses": {
        "anxious": (
            "I hear that you're feeling anxious. Remember: anxiety often makes things seem bigger than "
            "they are. Try this: Name 5 things you can see, 4 you can touch, 3 you can hear, 2 you can "
            "smell, and 1 you can taste. This grounds you in the present moment."
        ),
        "stressed": (
            "Stress is your body's way of saying it needs support. Take a deep breath. Ask yourself: "
            "What's ONE thing I can do right now? Start there. You don't need to solve everything at once."
        ),
        "sad": (
            "It's okay to feel sad. These emotions are valid and temporary. Be gentle with yourself "
            "today. Do something small that brings you comfort - a warm drink, a favorite song, or "
            "reaching out to someone you trust."
        ),
        "overwhelmed": (
            "When everything feels like too much, pause. Write down what's overwhelming you. Then "
            "circle just ONE thing you can address today. Progress, not perfection."
        ),
        "lonely": (
            "Loneliness can feel heavy. Remember that reaching out is a sign of strength. Consider: "
            "Who could you text right now? What activity could connect you with others? You deserve "
            "connection."
        ),
        "exhausted": (
            "Emotional exhaustion is real. Your feelings are valid. What's one small act of self-care "
            "you could do in the next 10 minutes? Even washing your face or drinking water counts."
        ),
        "default": (
            "Thank you for sharing. Remember: You're doing better than you think. Every challenge you "
            "face is shaping you into someone stronger. What's one small act of self-care you can do "
            "in the next hour?"
        ),
    },
}

# ---------------------------------------------------------------------------
# Cognitive distortion spotter
# ---------------------------------------------------------------------------

DISTORTIONS: Mapping[str, DistortionInfo] = {
    info.category: info
    for info in (
        DistortionInfo(
            "all_or_nothing",
            "All-or-Nothing Thinking",
            "Seeing things in black and white categories",
            "\"If I'm not perfect, I'm a total failure\"",
        ),
        DistortionInfo(
            "overgeneralization",
            "Overgeneralization",
            "Seeing a single negative event as a never-ending pattern",
            "\"Nothing ever works out for me\"",
        ),
        DistortionInfo(
            "mental_filter",
            "Mental Filter",
            "Focusing only on negatives while ignoring positives",
            "Dwelling on one criticism despite multiple compliments",
        ),
        DistortionInfo(
            "jumping_to_conclusions",
            "Jumping to Conclusions",
            "Making negative interpretations without evidence",
            "\"They didn't reply, they must hate me\"",
        ),
        DistortionInfo(
            "catastrophizing",
            "Catastrophizing",
            "Expecting the worst possible outcome",
            "\"If I fail this test, my life is ruined\"",
        ),
        DistortionInfo(
            "emotional_reasoning",
            "Emotional Reasoning",
            "Believing feelings reflect reality",
            "\"I feel like a failure, so I must be one\"",
        ),
        DistortionInfo(
            "should_statements",
            "Should Statements",
            "Rigid rules about how you or others should behave",
            "\"I should be able to handle this perfectly\"",
        ),
    )
}

# Table order is the reframe priority: the first detected distortion picks it.
COGNITIVE_DISTORTION_TABLE = {
    "mode": MULTI_MATCH,
    "default": "mental_filter",
    "rules": [
        {
            "category": "all_or_nothing",
            "keywords": ["always", "never", "everything", "nothing"],
            "regex": [r"\b(perfect|total|complete)\s+(failure|disaster)\b"],
        },
        {
            "category": "overgeneralization",
            "keywords": ["nothing ever", "always happens", "everyone", "no one"],
        },
        {
            "category": "jumping_to_conclusions",
            "keywords": ["must hate", "probably thinks", "doesn't like", "will fail"],
        },
        {
            "category": "catastrophizing",
            "keywords": ["worst", "terrible", "disaster", "ruined", "catastrophe"],
        },
        {
            "category": "emotional_reasoning",
            "require_keywords": ["i feel"],
            "keywords": ["so i", "must be"],
        },
        {
            "category": "should_statements",
            "keywords": ["should", "must", "ought to"],
        },
    ],
}

COGNITIVE_DISTORTION_CATALOG = {
    "fallback_category": "mental_filter",
    "responses": {
        "all_or_nothing": (
            "Let's find the middle ground. Instead of 'perfect or failure', what would 'good enough' "
            "look like? Progress isn't all-or-nothing."
        ),
        "overgeneralization": (
            "This is one situation, not a permanent pattern. What are some times when things did work "
            "out for you?"
        ),
        "mental_filter": (
            "What else happened today? Let's balance this by acknowledging both the negative and "
            "positive aspects."
        ),
        "jumping_to_conclusions": (
            "What evidence do you have for this conclusion? What are other possible explanations that "
            "might be equally or more likely?"
        ),
        "catastrophizing": (
            "What's the most likely outcome, realistically? Even if something bad happens, how might "
            "you cope with it?"
        ),
        "emotional_reasoning": (
            "Feelings are real, but they aren't always facts. What would you tell a friend feeling this "
            "way? What's the objective evidence?"
        ),
        "should_statements": (
            "Replace 'should' with 'prefer' or 'would like to'. This removes harsh judgment and creates "
            "space for self-compassion."
        ),
    },
}

# ---------------------------------------------------------------------------
# Sleep guardian
# ---------------------------------------------------------------------------

SLEEP_GUARDIAN_TABLE = {
    "mode": FIRST_MATCH,
    "default": "listening",
    "rules": [
        {"category": "insomnia", "keywords": ["sleep", "can't sleep", "insomnia", "awake"]},
        {"category": "night_worry", "keywords": ["worried", "worry", "anxious", "stress", "thinking"]},
        {"category": "nightmare", "keywords": ["nightmare", "bad dream", "scared", "afraid"]},
        {"category": "lonely", "keywords": ["alone", "lonely"]},
        {"category": "relax", "keywords": ["relax", "calm", "peaceful"]},
    ],
}

SLEEP_GUARDIAN_CATALOG = {
    "responses": {
        "insomnia": (
            "I understand it's hard when sleep won't come. Let's try the 4-7-8 breathing technique: "
            "Breathe in quietly through your nose for 4 counts, hold for 7, then exhale completely "
            "through your mouth for 8. Repeat 3-4 times. Would you like to try this together?"
        ),
        "night_worry": (
            "Night worries can feel overwhelming. Remember: 3 AM thoughts are not facts. Try this - "
            "imagine placing each worry in a bubble and watching it float away. What's one thing you "
            "can do about this tomorrow? For now, you need rest."
        ),
        "nightmare": (
            "Dreams can be unsettling, but you're safe now. Try this grounding technique: Name 5 things "
            "you can see in your room, 4 things you can touch, 3 things you can hear, 2 things you can "
            "smell, and 1 thing you can taste. You're here, you're safe."
        ),
        "lonely": (
            "You're not alone, even in the quiet of night. Many people are awake right now, feeling "
            "similar things. I'm here with you. Would you like to talk about what's making you feel "
            "lonely, or would you prefer a calming story?"
        ),
        "relax": (
            "Let's create calm together. Close your eyes and imagine a peaceful place - maybe a quiet "
            "beach, a forest, or a cozy room. Notice the details: what do you see, hear, feel? Let "
            "yourself sink deeper into this peaceful space."
        ),
        "listening": (
            "I hear you. Sometimes it helps just to express what we're feeling. Take a slow, deep "
            "breath with me. In... and out. How are you feeling right now?"
        ),
    },
}

SLEEP_GUARDIAN_GREETING = (
    "Good evening. I'm here to keep you company through the night. Whether you're having trouble "
    "sleeping, feeling anxious, or just need someone to talk to - I'm here. What's on your mind?"
)

# ---------------------------------------------------------------------------
# Gratitude journal
# ---------------------------------------------------------------------------

DAILY_CHALLENGES = (
    "Compliment someone genuinely today",
    "Help someone without being asked",
    "Try something new that scares you a little",
    "Spend 10 minutes in nature",
    "Write a thank you note to someone",
    "Practice saying no to something that drains you",
    "Share your knowledge with someone",
    "Do something creative for 15 minutes",
    "Have a meaningful conversation",
    "Practice forgiveness toward yourself or others",
)

GRATITUDE_TABLE = {"mode": FIRST_MATCH, "default": "gratitude", "rules": []}

GRATITUDE_CATALOG = {
    "random": True,
    "responses": {
        "gratitude": (
            "That's wonderful to hear. Gratitude practices have been shown to improve mental "
            "well-being. What else are you grateful for today?"
        ),
        DAILY_CHALLENGE: list(DAILY_CHALLENGES),
    },
}

# ---------------------------------------------------------------------------
# Face-aware chat
# ---------------------------------------------------------------------------

FACE_DETECTION_CATALOG = {
    "random": True,
    "fallback_category": NEUTRAL_EMOTION,
    "responses": {
        "sad": [
            "I can see you might be feeling down right now. That's okay - difficult emotions are part "
            "of being human. Would you like to talk about what's bothering you?",
            "It's clear something heavy is on your mind. Remember, you don't have to carry this alone. "
            "I'm here to listen.",
            "I notice you seem sad. Sometimes just expressing what we feel can help lighten the load. "
            "What's going on?",
        ],
        "happy": [
            "I can see you're smiling! That's wonderful. What's brought this joy into your day? I'd love "
            "to hear about it.",
            "Your positivity is beautiful! What are you grateful for right now?",
            "You seem to be in a great mood! This is a perfect time to reflect on what makes you happy.",
        ],
        "angry": [
            "I sense some intensity in your expression. It's natural to feel angry sometimes. Let's talk "
            "about what's frustrating you.",
            "Anger is valid emotion. Take a deep breath with me. What's happened that's upset you?",
            "I can tell something has angered you. Let's work through this together.",
        ],
        "fearful": [
            "You seem anxious or worried. That's understandable - we all have fears. What's making you "
            "feel unsafe right now?",
            "I can sense some fear or worry. Remember, you're safe here. What are you concerned about?",
            "It looks like something is worrying you. Let's talk about what's causing this anxiety.",
        ],
        NEUTRAL_EMOTION: [
            "You seem calm and composed. That's a good place to be. How are you feeling today?",
            "You have a peaceful expression. Is there anything on your mind you'd like to share?",
            "You seem thoughtful. What would you like to talk about?",
        ],
        "surprised": [
            "Something seems to have caught your attention! What's surprised you?",
            "You look intrigued! Share what's caught your interest.",
            "I can see something has sparked your curiosity. Tell me more!",
        ],
    },
}

FACE_DETECTION_GREETING = (
    "Hello! I can see your face and detect your emotions. This helps me respond to you more "
    "compassionately. Please allow camera access to get started."
)

# ---------------------------------------------------------------------------
# Venting shredder
# ---------------------------------------------------------------------------

VENTING_CATALOG = {
    "responses": {
        "released": (
            "Your thoughts have been released. Take a deep breath. You've taken an important step in "
            "processing your emotions."
        ),
    },
}


def default_bots() -> list[BotDefinition]:
    """Return the built-in bot definitions."""

    return [
        BotDefinition(
            bot_type=TRIPLE_M,
            name="Music, Mindfulness & Mood",
            table=build_rule_table(TRIPLE_M_TABLE),
            catalog=build_catalog(TRIPLE_M_CATALOG),
        ),
        BotDefinition(
            bot_type=MICRO_THERAPY,
            name="60-Second Support",
            table=build_rule_table(MICRO_THERAPY_TABLE),
            catalog=build_catalog(MICRO_THERAPY_CATALOG),
            conversation_policy=PER_SESSION,
            processing_delay=3.0,
        ),
        BotDefinition(
            bot_type=COGNITIVE_DISTORTION,
            name="Cognitive Distortion Spotter",
            table=build_rule_table(COGNITIVE_DISTORTION_TABLE),
            catalog=build_catalog(COGNITIVE_DISTORTION_CATALOG),
        ),
        BotDefinition(
            bot_type=SLEEP_GUARDIAN,
            name="Sleep Guardian",
            table=build_rule_table(SLEEP_GUARDIAN_TABLE),
            catalog=build_catalog(SLEEP_GUARDIAN_CATALOG),
            conversation_policy=REUSE,
            title="Sleep Guardian Session",
            processing_delay=1.5,
            greeting=SLEEP_GUARDIAN_GREETING,
        ),
        BotDefinition(
            bot_type=GRATITUDE,
            name="Gratitude Journal",
            table=build_rule_table(GRATITUDE_TABLE),
            catalog=build_catalog(GRATITUDE_CATALOG),
        ),
        BotDefinition(
            bot_type=FACE_DETECTION,
            name="Face-Aware Chat",
            catalog=build_catalog(FACE_DETECTION_CATALOG),
            conversation_policy=PER_SESSION,
            title="Face Detection Chat",
            greeting=FACE_DETECTION_GREETING,
        ),
        BotDefinition(
            bot_type=VENTING_SHREDDER,
            name="Venting Shredder",
            catalog=build_catalog(VENTING_CATALOG),
            processing_delay=1.5,
        ),
    ]


def default_registry() -> BotRegistry:
    return BotRegistry(default_bots())
