"""
Default catalogue: characters, philosophies and quotes.

Seeding is idempotent; it does nothing once any character exists.
"""

from typing import Dict, List, Optional

from sqlalchemy import select

from core import get_logger
from storage.models import Character, Philosophy, Quote

logger = get_logger(__name__)

DEFAULT_CHARACTERS: List[Dict[str, str]] = [
    # Ancient Western philosophers
    {
        "name": "Marcus Aurelius",
        "description": "Stoic Emperor",
        "category": "philosophy",
        "biography": "Roman emperor and philosopher (121-180 CE) known for his 'Meditations', embodying the Stoic ideal of the philosopher-king.",
    },
    {
        "name": "Socrates",
        "description": "Father of Western Philosophy",
        "category": "philosophy",
        "biography": "Ancient Greek philosopher (470-399 BCE) who established critical thinking as the foundation for truth-seeking through dialectical method.",
    },
    # Eastern spiritual masters
    {
        "name": "Buddha (Siddhartha Gautama)",
        "description": "The Awakened One",
        "category": "spirituality",
        "biography": "Founder of Buddhism (563-483 BCE), taught the Middle Way and the Four Noble Truths for liberation from suffering.",
    },
    {
        "name": "Lao Tzu",
        "description": "Father of Taoism",
        "category": "spirituality",
        "biography": "Ancient Chinese philosopher (6th century BCE) who founded Taoism, emphasizing natural harmony and wu wei (effortless action).",
    },
    {
        "name": "Confucius",
        "description": "Great Teacher",
        "category": "philosophy",
        "biography": "Chinese philosopher (551-479 BCE) whose teachings on ethics, morality, and social harmony shaped East Asian culture for millennia.",
    },
    # Persian mystic poets
    {
        "name": "Rumi",
        "description": "Mystic Poet of Divine Love",
        "category": "spirituality",
        "biography": "13th-century Persian mystic poet whose verses on divine love and spiritual union remain globally influential across cultures.",
    },
    {
        "name": "Hafez",
        "description": "The Tongue of the Invisible",
        "category": "spirituality",
        "biography": "14th-century Persian Sufi poet whose ghazals beautifully interweave earthly love with mystical spiritual truths.",
    },
    {
        "name": "Ibn Arabi",
        "description": "The Greatest Master",
        "category": "spirituality",
        "biography": "13th-century Andalusian mystic philosopher who developed the doctrine of Unity of Being, influencing both Islamic and Western mysticism.",
    },
    # American transcendentalists
    {
        "name": "Ralph Waldo Emerson",
        "description": "Sage of Concord",
        "category": "philosophy",
        "biography": "American transcendentalist philosopher (1803-1882) who emphasized self-reliance, individualism, and the inherent divinity of nature.",
    },
    {
        "name": "Henry David Thoreau",
        "description": "Nature's Prophet",
        "category": "philosophy",
        "biography": "American philosopher and naturalist (1817-1862) whose 'Walden' inspired environmentalism and civil disobedience movements.",
    },
    # Indian spiritual teachers
    {
        "name": "Sadhguru",
        "description": "Modern Mystic",
        "category": "contemporary",
        "biography": "Contemporary Indian guru and founder of Isha Foundation, bringing ancient yogic wisdom to global audiences through practical spirituality.",
    },
    {
        "name": "Jiddu Krishnamurti",
        "description": "World Teacher",
        "category": "contemporary",
        "biography": "20th-century philosopher (1895-1986) who emphasized individual inquiry, freedom from conditioning, and direct perception of truth.",
    },
    # Contemporary spiritual teachers
    {
        "name": "Eckhart Tolle",
        "description": "Teacher of Presence",
        "category": "contemporary",
        "biography": "German-born spiritual teacher known for 'The Power of Now', bridging ancient wisdom with modern consciousness awakening.",
    },
    {
        "name": "Joe Dispenza",
        "description": "Science of Transformation",
        "category": "contemporary",
        "biography": "American neuroscientist and author who combines quantum physics, neuroscience, and ancient wisdom to explain human potential.",
    },
    {
        "name": "Alan Watts",
        "description": "Bridge Between East and West",
        "category": "contemporary",
        "biography": "British philosopher (1915-1973) who popularized Eastern philosophy for Western audiences, making Zen and Taoism accessible.",
    },
    # Buddhist masters
    {
        "name": "Thich Nhat Hanh",
        "description": "Father of Mindfulness",
        "category": "contemporary",
        "biography": "Vietnamese Zen master (1926-2022) who brought mindfulness to the West and pioneered engaged Buddhism for social change.",
    },
    {
        "name": "Dalai Lama",
        "description": "Ocean of Wisdom",
        "category": "contemporary",
        "biography": "14th Dalai Lama, Nobel Peace Prize laureate advocating compassion, non-violence, and the integration of science with spirituality.",
    },
    # Transformational figures
    {
        "name": "Viktor Frankl",
        "description": "Logotherapist",
        "category": "psychology",
        "biography": "Holocaust survivor and psychologist (1905-1997) who developed logotherapy, demonstrating that meaning-making is humanity's primary drive.",
    },
    {
        "name": "Ram Dass",
        "description": "Consciousness Explorer",
        "category": "contemporary",
        "biography": "American spiritual teacher (1931-2019) whose 'Be Here Now' became a cornerstone of Western spiritual awakening and psychedelic spirituality.",
    },
    {
        "name": "Maya Angelou",
        "description": "Phenomenal Woman",
        "category": "literature",
        "biography": "American poet and civil rights activist (1928-2014) whose autobiographical works inspire resilience, dignity, and the power of storytelling.",
    },
]

DEFAULT_PHILOSOPHIES: List[Dict[str, str]] = [
    # Classical Western philosophy
    {"name": "Stoicism", "description": "Ancient Greek philosophy emphasizing virtue, wisdom, and emotional resilience through rational thought and acceptance of what we cannot control."},
    {"name": "Existentialism", "description": "Modern philosophy emphasizing individual existence, freedom, and choice in creating authentic meaning in an apparently meaningless universe."},
    {"name": "Neo-Platonism", "description": "Late ancient philosophy viewing reality as emanation from 'The One' through multiple levels, emphasizing contemplative return to unity."},
    {"name": "Transcendentalism", "description": "19th-century American movement emphasizing inherent goodness of people and nature, individual intuition, and social reform."},
    # Eastern spiritual traditions
    {"name": "Buddhism", "description": "Ancient teaching focused on mindfulness, compassion, and liberation from suffering through the Eightfold Path and meditation."},
    {"name": "Zen Buddhism", "description": "Direct insight tradition emphasizing meditation practice, present-moment awareness, and awakening to Buddha-nature beyond concepts."},
    {"name": "Vipassana-Dhamma", "description": "Buddhist meditation practice for developing clear insight into reality through systematic observation of impermanence and non-self."},
    {"name": "Taoism", "description": "Chinese philosophy emphasizing harmony with the natural order, wu wei (effortless action), and the balance of yin-yang."},
    # Hindu and yogic traditions
    {"name": "Advaita Vedanta", "description": "Non-dualist Hindu philosophy teaching that individual consciousness (Atman) and universal consciousness (Brahman) are one."},
    {"name": "Kashmir Shaivism", "description": "Tantric tradition viewing the world as real divine play of Shiva-Shakti consciousness, emphasizing dynamic spiritual practice."},
    {"name": "Yogic Wisdom", "description": "Ancient Indian system integrating physical, mental, and spiritual practices for self-realization and unity consciousness."},
    {"name": "Vedanta", "description": "Hindu philosophical tradition exploring the nature of reality, consciousness, and the path to liberation through knowledge."},
    # Mystical traditions
    {"name": "Sufism", "description": "Islamic mystical tradition emphasizing direct personal experience of divine love through purification of the heart and remembrance."},
    {"name": "Christian Mysticism", "description": "Contemplative tradition seeking direct, experiential union with God through prayer, meditation, and surrender of the ego."},
    {"name": "Kabbalah", "description": "Jewish mystical tradition exploring hidden dimensions of reality through the Tree of Life and direct experience of divine emanation."},
    # Humanistic approaches
    {"name": "Humanism", "description": "Philosophy emphasizing human dignity, potential for flourishing, and ethical living through reason, compassion, and personal growth."},
    {"name": "Positive Psychology", "description": "Scientific study of human flourishing, focusing on strengths, virtues, and factors that contribute to meaningful, fulfilling life."},
    {"name": "Integral Philosophy", "description": "Comprehensive framework integrating multiple perspectives and developmental stages to understand consciousness and reality holistically."},
    # Contemporary movements
    {"name": "Mindfulness Movement", "description": "Modern adaptation of ancient meditation practices emphasizing present-moment awareness for healing, growth, and awakening."},
    {"name": "New Thought Movement", "description": "Spiritual philosophy emphasizing the power of positive thinking, mental science, and the creative potential of consciousness."},
]

# character_id and philosophy_id are resolved at seed time
DEFAULT_QUOTES: List[Dict[str, str]] = [
    {"text": "The happiness of your life depends upon the quality of your thoughts.", "author": "Marcus Aurelius", "category": "mindset"},
    {"text": "What we think, we become.", "author": "Buddha (Siddhartha Gautama)", "category": "consciousness"},
    {"text": "The only true wisdom is in knowing you know nothing.", "author": "Socrates", "category": "wisdom"},
    {"text": "Let yourself be silently drawn by the strange pull of what you really love. It will not lead you astray.", "author": "Rumi", "category": "passion"},
    {"text": "Everything can be taken from a man but one thing: the last of human freedoms - to choose one's attitude in any given set of circumstances.", "author": "Viktor Frankl", "category": "freedom"},
    {"text": "If you don't like something, change it. If you can't change it, change your attitude.", "author": "Maya Angelou", "category": "empowerment"},
    {"text": "You have power over your mind - not outside events. Realize this, and you will find strength.", "author": "Marcus Aurelius", "category": "control"},
    {"text": "Peace comes from within. Do not seek it without.", "author": "Buddha (Siddhartha Gautama)", "category": "peace"},
    {"text": "The way is not in the sky. The way is in the heart.", "author": "Buddha (Siddhartha Gautama)", "category": "wisdom"},
    {"text": "Yesterday I was clever, so I wanted to change the world. Today I am wise, so I am changing myself.", "author": "Rumi", "category": "growth"},
]

# Author name fragment -> philosophy the quote belongs to
AUTHOR_PHILOSOPHIES: Dict[str, str] = {
    "Marcus Aurelius": "Stoicism",
    "Buddha": "Buddhism",
}


def match_character(author: str, characters: List[Character]) -> Optional[Character]:
    """First character named exactly like the author, or containing the author's first word."""
    first_word = author.split(" ")[0]
    for character in characters:
        if character.name == author or first_word in character.name:
            return character
    return None


def match_philosophy(author: str, philosophies: List[Philosophy]) -> Optional[Philosophy]:
    for fragment, philosophy_name in AUTHOR_PHILOSOPHIES.items():
        if fragment in author:
            return next((p for p in philosophies if p.name == philosophy_name), None)
    return None


async def seed_database(database) -> bool:
    """
    Insert the default catalogue if it is missing.

    Args:
        database: AsyncDatabase to seed

    Returns:
        True if data was inserted, False if the catalogue already existed
    """
    async with database.get_session() as session:
        result = await session.execute(select(Character.id).limit(1))
        if result.scalar_one_or_none() is not None:
            logger.info("Database already seeded")
            return False

        characters = [Character(**data) for data in DEFAULT_CHARACTERS]
        philosophies = [Philosophy(**data) for data in DEFAULT_PHILOSOPHIES]
        session.add_all(characters)
        session.add_all(philosophies)
        await session.flush()  # Assign ids for the quote links

        quotes = []
        for data in DEFAULT_QUOTES:
            character = match_character(data["author"], characters)
            philosophy = match_philosophy(data["author"], philosophies)
            quotes.append(
                Quote(
                    **data,
                    character_id=character.id if character else None,
                    philosophy_id=philosophy.id if philosophy else None,
                )
            )
        session.add_all(quotes)

    logger.info(
        "Database seeded",
        characters=len(characters),
        philosophies=len(philosophies),
        quotes=len(quotes),
    )
    return True
