"""Built-in prompt corpus and prompt-list resolution."""

from __future__ import annotations

from collections.abc import Sequence

from parley.constants import PromptMode

BUILTIN_PROMPTS: dict[str, tuple[str, ...]] = {
    "general": (
        "Hello, how are you today?",
        "What's your favorite color and why?",
        "Tell me about the weather",
        "What do you think about artificial intelligence?",
        "Can you help me with a problem?",
        "What's the meaning of life?",
        "How do you stay motivated?",
        "What's your opinion on climate change?",
        "Tell me a joke",
        "What's your favorite book?",
        "How do you spend your free time?",
        "What makes you happy?",
        "Can you explain something complex in simple terms?",
        "What would you do if you could time travel?",
        "What's the most important lesson you've learned?",
    ),
    "qa": (
        "What is machine learning?",
        "How does photosynthesis work?",
        "What are the benefits of renewable energy?",
        "Explain quantum computing",
        "What causes earthquakes?",
        "How do vaccines work?",
        "What is blockchain technology?",
        "Explain the theory of relativity",
        "What is DNA?",
        "How do computers process information?",
        "What are artificial neural networks?",
        "How does the internet work?",
        "What is climate change?",
        "Explain the water cycle",
        "What are black holes?",
    ),
    "creative": (
        "Write a short story about a time traveler",
        "Create a poem about the ocean",
        "Describe a futuristic city",
        "Write a dialogue between two robots",
        "Create a character for a fantasy novel",
        "Write a song about friendship",
        "Describe a magical forest",
        "Create a superhero origin story",
        "Write a letter from the future",
        "Describe an alien civilization",
        "Imagine a world without gravity",
        "Create a story about a sentient AI",
        "Describe your dream house",
        "Write about a day in 2050",
        "Create a conversation between Earth and Mars",
    ),
    "technical": (
        "Explain RESTful API design principles",
        "What are the differences between SQL and NoSQL?",
        "How does encryption work?",
        "Explain microservices architecture",
        "What is containerization with Docker?",
        "How do neural networks learn?",
        "What is version control with Git?",
        "Explain cloud computing concepts",
        "What are design patterns in programming?",
        "How does blockchain consensus work?",
        "What is GraphQL vs REST?",
        "Explain serverless architecture",
        "What are the principles of clean code?",
        "How does machine learning training work?",
        "What is DevOps and CI/CD?",
    ),
    "educational": (
        "Teach me about the solar system",
        "Explain basic chemistry concepts",
        "What is the scientific method?",
        "How do plants grow?",
        "Explain the water cycle",
        "What is evolution?",
        "How do muscles work?",
        "Explain the food chain",
        "What causes seasons?",
        "How do we see colors?",
        "What is the structure of an atom?",
        "How does the brain work?",
        "What are the laws of physics?",
        "Explain cellular respiration",
        "What is genetic inheritance?",
    ),
    # Used when mode is "custom" but no custom prompts were supplied.
    "custom": (
        "Tell me about your capabilities",
        "What can you help me with?",
        "How do you process information?",
    ),
}


def resolve_prompts(
    mode: PromptMode | str,
    custom_prompts: Sequence[str] = (),
) -> tuple[str, ...]:
    """Return the ordered prompt list for *mode*.

    ``custom`` uses *custom_prompts* when any are non-blank, otherwise the
    built-in default custom set. Unknown modes fall back to ``general``.
    """
    if mode == "custom":
        supplied = tuple(p for p in custom_prompts if p.strip())
        if supplied:
            return supplied
    return BUILTIN_PROMPTS.get(mode, BUILTIN_PROMPTS["general"])
