"""Prompt builders for the learning plan generator."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .plan_models import GeneratePlanRequest

PEDAGOGY_RULES: List[str] = [
    "Progressive complexity: start with fundamentals, build to advanced concepts",
    "Spaced repetition: revisit key concepts across multiple weeks",
    "Multi-modal learning: mix videos, reading, interactive exercises, and projects",
    "Practical application: include hands-on projects to reinforce learning",
    "Resource diversity: use different teaching styles and perspectives",
]

SOURCE_RULES: List[str] = [
    "YouTube: ONLY use videos from major educational channels (freeCodeCamp.org, Traversy Media, Programming with Mosh, Corey Schafer, etc.)",
    "Documentation: only official documentation sites (docs.python.org, developer.mozilla.org, react.dev, etc.)",
    "Courses: only official course platform pages (coursera.org, edx.org, khanacademy.org, freecodecamp.org)",
    "Articles: only major tech publications (dev.to, css-tricks.com, smashingmagazine.com, realpython.com)",
    "Interactive: prefer embeddable platforms (CodePen, CodeSandbox, StackBlitz, Replit, freeCodeCamp)",
]

EXCLUDED_SOURCES: List[str] = [
    "Udemy links (often removed or made private)",
    "Old blog posts or personal websites",
    "Any URL you are not 100% certain is currently active",
    "Paywalled or premium content",
    "Sites that block iframe embedding (Facebook, Twitter, LinkedIn)",
]

_EXAMPLE_PLAN: Dict[str, Any] = {
    "topic": "Python Programming",
    "weeks": [
        {
            "weekNumber": 1,
            "theme": "Python Fundamentals & Syntax",
            "resources": [
                {
                    "id": 1,
                    "type": "video",
                    "title": "Python Tutorial for Beginners - Full Course in 12 Hours",
                    "source": "YouTube - freeCodeCamp.org",
                    "url": "https://www.youtube.com/watch?v=rfscVS0vtbw",
                    "duration": "3 hours (watch sections 1-3)",
                    "description": "Comprehensive introduction to Python basics, variables, and data types",
                    "completed": False,
                },
                {
                    "id": 2,
                    "type": "reading",
                    "title": "Python Official Tutorial",
                    "source": "Python.org Documentation",
                    "url": "https://docs.python.org/3/tutorial/",
                    "duration": "1.5 hours",
                    "description": "Official Python documentation covering basic syntax and data structures",
                    "completed": False,
                },
            ],
        },
        {
            "weekNumber": 2,
            "theme": "Control Flow & Functions",
            "resources": [
                {
                    "id": 3,
                    "type": "reading",
                    "title": "Python Control Flow",
                    "source": "Real Python",
                    "url": "https://realpython.com/python-conditional-statements/",
                    "duration": "1 hour",
                    "description": "Understanding if statements, loops, and logic",
                    "completed": False,
                },
                {
                    "id": 4,
                    "type": "project",
                    "title": "Build a Simple Calculator",
                    "source": "GitHub - Practice Project",
                    "url": "https://github.com/topics/python-calculator",
                    "duration": "3 hours",
                    "description": "Apply functions and control flow to build a working calculator",
                    "completed": False,
                },
            ],
        },
    ],
}


def _bullets(items: List[str], indent: str = "- ") -> str:
    return "\n".join(f"{indent}{item}" for item in items)


def build_system_prompt() -> str:
    """System instructions covering pedagogy and a worked example."""
    sections = [
        "You are an expert learning path designer with expertise in creating comprehensive, realistic "
        "study plans using REAL resources that actually exist online.",
        "LEARNING DESIGN PRINCIPLES:\n" + _bullets(PEDAGOGY_RULES),
        "EXAMPLE - Python for Beginners (2 weeks, 5 hours/week):\n"
        + json.dumps(_EXAMPLE_PLAN, indent=2),
    ]
    return "\n\n".join(sections)


def _output_template(topic: str) -> str:
    template = {
        "topic": topic,
        "weeks": [
            {
                "weekNumber": 1,
                "theme": "Week theme here",
                "resources": [
                    {
                        "id": 1,
                        "type": "video",
                        "title": "Exact title of real resource",
                        "source": "Platform - Creator/Channel",
                        "url": "https://actual-working-url.com",
                        "duration": "X hours",
                        "description": "Brief description of what this teaches",
                        "completed": False,
                    }
                ],
            }
        ],
    }
    return json.dumps(template, indent=2, ensure_ascii=False)


def build_user_prompt(request: GeneratePlanRequest, resource_count: int) -> str:
    """Per-request instructions: size, source whitelist, exclusions and output shape."""
    requirements = [
        f"Include {resource_count} REAL, CURRENTLY ACTIVE resources that are verified to exist",
        "CRITICAL URL REQUIREMENTS:\n" + _bullets(SOURCE_RULES, indent="  * "),
        "ABSOLUTELY AVOID:\n" + _bullets(EXCLUDED_SOURCES, indent="  * "),
        "Prioritize resources that can be embedded directly in the learning interface "
        "(YouTube videos, freeCodeCamp interactive exercises, CodePen demos, PDF documents)",
        "Organize by week with clear, progressive themes",
        "Each resource needs: title, source, URL, estimated time, description",
        "Mix content types: video, reading, interactive, project",
        "Only include resources that are FREE and permanently accessible",
        "Number weeks from 1 and give every resource a unique sequential id across the whole plan",
        "Ensure logical skill progression across weeks",
    ]
    return (
        f'Create a {request.weeks}-week study plan for learning "{request.topic}" at {request.level} level, '
        f"with {request.hours_per_week} hours per week.\n\n"
        f"Requirements:\n{_bullets(requirements)}\n\n"
        "Return ONLY valid JSON in this exact format (no markdown, no code blocks):\n"
        f"{_output_template(request.topic)}"
    )


__all__ = [
    "EXCLUDED_SOURCES",
    "PEDAGOGY_RULES",
    "SOURCE_RULES",
    "build_system_prompt",
    "build_user_prompt",
]
