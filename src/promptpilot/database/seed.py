"""Built-in prompt templates inserted on first start."""

from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import PromptTemplate


def _pillars(*pairs) -> List[Dict[str, Any]]:
    return [
        {"id": str(index + 1), "title": title, "description": description, "order": index}
        for index, (title, description) in enumerate(pairs)
    ]


DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "title": "Four Pillars",
        "description": "General purpose structure used when no template is selected.",
        "system_prefix": (
            "You are an expert prompt engineer that transforms input prompts "
            "into highly effective, well-structured prompts."
        ),
        "temperature": 0.7,
        "max_chars": 4000,
        "pillars": _pillars(
            ("Task", "What needs to be done and what the result should be."),
            ("Persona", "Who the model should act as and the tone it should use."),
            ("Conditions", "Constraints, limits and things to avoid."),
            ("Instructions", "Step-by-step guidance on how to proceed."),
        ),
    },
    {
        "title": "Image Generation",
        "description": "Visual prompts for image models.",
        "system_prefix": "You are an art director who writes precise prompts for image generation models.",
        "temperature": 0.8,
        "max_chars": 2000,
        "pillars": _pillars(
            ("Subject Matter", "The main subject and its defining features."),
            ("Style", "Artistic style, medium and references."),
            ("Composition", "Framing, positioning and background."),
            ("Mood", "Atmosphere and the emotion the image should evoke."),
            ("Technical", "Dimensions, resolution and file format."),
        ),
    },
    {
        "title": "Code Creation",
        "description": "Generate new code in a given language or framework.",
        "system_prefix": (
            "You are an expert software developer with deep knowledge across "
            "multiple programming languages and frameworks."
        ),
        "temperature": 0.6,
        "max_chars": 4000,
        "pillars": _pillars(
            ("Language & Framework", "The programming language, framework or stack to use."),
            ("Functionality", "What the code should do, including inputs, outputs and behaviour."),
            ("Style & Best Practices", "Coding style, patterns or practices to follow."),
            ("Documentation", "Comments, docstrings or explanations required."),
        ),
    },
    {
        "title": "Code Debugging",
        "description": "Find and fix a defect.",
        "system_prefix": (
            "You are an expert debugging specialist who can identify and fix "
            "errors in any programming language."
        ),
        "temperature": 0.5,
        "max_chars": 4000,
        "pillars": _pillars(
            ("Error Description", "The error message or the unexpected behaviour."),
            ("Code Snippet", "The relevant code that causes the issue."),
            ("Environment", "Language version, framework and dependencies."),
            ("Expected Behavior", "What the code should do when it works."),
        ),
    },
    {
        "title": "Executive Email",
        "description": "Clear, persuasive business communication.",
        "system_prefix": (
            "You are an expert business communicator who crafts clear, "
            "persuasive executive communications."
        ),
        "temperature": 0.7,
        "max_chars": 3000,
        "pillars": _pillars(
            ("Request/Purpose", "What you are asking for or informing about."),
            ("Context", "Relevant background information or rationale."),
            ("Key Points", "The main points that support the request."),
            ("Call to Action", "What the recipient should do after reading."),
        ),
    },
    {
        "title": "Blog Post Drafting",
        "description": "Engaging long-form posts.",
        "system_prefix": "You are a professional content writer who creates engaging, SEO-optimized blog posts.",
        "temperature": 0.7,
        "max_chars": 4000,
        "pillars": _pillars(
            ("Topic & Angle", "The subject and the perspective taken."),
            ("Target Audience", "Who will read the post."),
            ("Key Points", "The main ideas to cover."),
            ("SEO & Style", "Keywords to target and tone of voice."),
        ),
    },
]


async def seed_default_templates(session: AsyncSession) -> int:
    """
    Insert the built-in templates when no default template exists yet.

    Returns:
        Number of templates inserted
    """
    result = await session.execute(
        select(func.count()).select_from(PromptTemplate).where(PromptTemplate.is_default.is_(True))
    )
    if result.scalar():
        return 0

    for template in DEFAULT_TEMPLATES:
        session.add(PromptTemplate(is_default=True, user_id=None, **template))
    await session.commit()
    return len(DEFAULT_TEMPLATES)
