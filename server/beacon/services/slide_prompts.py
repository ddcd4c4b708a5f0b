"""Prompt templates for AI slide synthesis."""

from typing import Optional

from beacon.schemas.slides import ExtractedImage

TRUNCATION_NOTE = "\n\n[... content truncated for length ...]"

SYSTEM_PROMPT = """You are an expert presentation designer. You turn the content of a PDF into a well-structured, professional slide deck that tells a story, not a list of keywords.

Guidelines:
1. Understand the document's meaning, context and purpose before writing anything.
2. Write professional slide titles that capture the key insight of each slide.
3. Organise slides into a logical narrative with clear sections.
4. Use the slide types appropriately:
   - "title": title slides or important headers (set "highlight": true for emphasis)
   - "content": 3-6 substantial bullet points, each 1-2 complete sentences
   - "quote": an important or memorable quote, with "quote" and optional "attribution"
   - "two-column": lists of 6 or more items, with "leftContent" and "rightContent"
   - "highlight": key content that needs emphasis
   - "section-divider": a section header that breaks up the deck (no content)
5. Rewrite for clarity and impact. Every bullet is a complete thought that explains, gives context or connects ideas.
6. {count_rule}
7. Avoid thin slides with only one or two short bullets.
{image_rule}
Return a JSON object with a "slides" array. Each slide has:
- "title": string
- "content": array of strings
- "type": "title" | "content" | "quote" | "two-column" | "highlight" | "section-divider"
- "quote", "attribution": strings (quote slides only)
- "leftContent", "rightContent": arrays of strings (two-column slides only)
- "highlight": boolean (optional)
- "imageIndices": array of integers (optional, indices of images to show on the slide)

Example:
{{
  "slides": [
    {{
      "title": "Why Transformation Matters Now",
      "content": [
        "Market conditions are shifting faster than annual planning cycles, so organisations need a way to adapt within a quarter.",
        "Three capabilities decide who keeps up: strategic planning, operational efficiency and customer engagement."
      ],
      "type": "content"
    }},
    {{"title": "Key Insights", "content": [], "type": "section-divider"}}
  ]
}}"""

EXACT_COUNT_RULE = (
    "CRITICAL REQUIREMENT: generate EXACTLY {n} slides. The \"slides\" array must contain "
    "exactly {n} entries, not {above} and not {below}. Count them before responding."
)

OPEN_COUNT_RULE = "Create 15-35 slides depending on the length of the content, covering all of it."

IMAGE_RULE = (
    "8. The document contains images, listed with their index, page and description. "
    "Attach an image to the slide it best illustrates with \"imageIndices\" (0-based); "
    "leave it out where no image fits.\n"
)

USER_PROMPT = """Create a professional presentation deck from this PDF content:

{text}

Filename: {filename}
{count_line}{images_block}
Write rich, narrative content: each content slide has 3-6 substantial bullet points, each one or two complete sentences, and the slides flow naturally from one to the next."""


def truncate_text(text: str, budget: int) -> tuple[str, bool]:
    if len(text) <= budget:
        return text, False
    return text[:budget] + TRUNCATION_NOTE, True


def describe_images_for_prompt(images: list[ExtractedImage]) -> str:
    lines = []
    for i, image in enumerate(images):
        line = f"- Image {i} (page {image.page}, {image.width}x{image.height})"
        if image.description:
            line += f": {image.description}"
        lines.append(line)
    return "\n".join(lines)


def build_prompts(
    text: str,
    filename: str,
    budget: int,
    target_count: Optional[int] = None,
    images: Optional[list[ExtractedImage]] = None,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair."""
    if target_count:
        count_rule = EXACT_COUNT_RULE.format(n=target_count, above=target_count + 1, below=target_count - 1)
        count_line = (
            f"\nABSOLUTE REQUIREMENT: distribute the content across EXACTLY {target_count} slides. "
            f"The JSON must have exactly {target_count} entries in \"slides\".\n"
        )
    else:
        count_rule = OPEN_COUNT_RULE
        count_line = ""

    system_prompt = SYSTEM_PROMPT.format(
        count_rule=count_rule,
        image_rule=IMAGE_RULE if images else "",
    )

    body, _ = truncate_text(text, budget)
    images_block = f"\nImages found in the document:\n{describe_images_for_prompt(images)}\n" if images else ""
    user_prompt = USER_PROMPT.format(
        text=body,
        filename=filename,
        count_line=count_line,
        images_block=images_block,
    )
    return system_prompt, user_prompt
