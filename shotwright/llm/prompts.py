"""
Shotwright Prompts

Prompt templates for every creative task, and builders that turn story inputs into
CreativeRequest objects. Hosted prompts carry the full creative brief; compact prompts
fit the local model's short context window.
"""

from typing import List, Optional, Sequence

from shotwright.core.constants import (
    APERTURES,
    CAMERA_ANGLES,
    CAMERA_MOVEMENTS,
    COLOR_GRADES,
    COMPOSITIONS,
    FOCAL_LENGTHS,
    LIGHTING_STYLES,
    SHOT_TYPES,
    SUGGESTION_FIELDS,
    CreativeTask,
)
from shotwright.models import (
    ChatMessage,
    DirectorVision,
    Shot,
    ShotList,
    ShotListResult,
    SoundscapeResult,
    Story,
    StyleSuggestions,
)

from .api_clients import CreativeRequest

# Scripts are truncated to this many characters for the local model
LOCAL_SCRIPT_LIMIT = 1000


CREATIVE_TEAM_BRIEF = """You are an AI Creative Team for vertical (9:16) short-form film: director, cinematographer, colorist and sound designer.
Every choice flows from the scene's emotional core. Camera work should be dynamic, with vertical parallax and purposeful movement.
Director's notes follow the Justification Mandate: WHY the choice serves the story, HOW it is executed, and what the audience should FEEL."""

OPTION_FIELDS = (
    ("shotType", SHOT_TYPES),
    ("cameraAngle", CAMERA_ANGLES),
    ("cameraMovement", CAMERA_MOVEMENTS),
    ("focalLength", FOCAL_LENGTHS),
    ("aperture", APERTURES),
    ("lightingStyle", LIGHTING_STYLES),
    ("colorGrade", COLOR_GRADES),
    ("composition", COMPOSITIONS),
)

SHOT_LIST_PROMPT = """{brief}

Analyze the following script, extract a 'title' and a 'logline', and break it down into a visually dynamic 9:16 shot list.
The pacing must be fast: prefer quick cuts and visual variety, roughly 14-15 shots per minute of screen time.
{vision_block}{instructions_block}
{option_rules}

Script:
---
{script}
---"""

SHOT_LIST_COMPACT = """You are a professional cinematographer. Analyze this script and create a shot list.

Script: {script}

Director's Instructions: {instructions}
Vision: {vision}

Return ONLY valid JSON in this exact format:
{{"title": "Brief title", "logline": "One sentence summary", "shots": [{{"description": "Shot description", "characterBlocking": "Who stands where", "shotType": "{shot_type}", "cameraAngle": "{camera_angle}", "cameraMovement": "{camera_movement}", "focalLength": "...", "aperture": "...", "lightingStyle": "...", "colorGrade": "...", "composition": "...", "technicalSpecs": {{"camera": "...", "lighting": "...", "audio": "..."}}, "directorNotes": "..."}}]}}"""

STYLE_PROMPT = """Analyze the following script and suggest 3 distinct, creative visual styles (Director's Visions) that would fit the narrative.
For each style, provide a genre, tone, colorPalette and inspirations.

Script:
---
{script}
---

Return a JSON object with a key "styles" containing an array of 3 objects."""

STYLE_COMPACT = """Analyze this script and suggest 3 distinct visual styles.

Script: {script}

Return ONLY valid JSON with 3 style suggestions:
{{"styles": [{{"genre": "Genre name", "tone": "Tone description", "colorPalette": "Color palette description", "inspirations": "Inspired by..."}}]}}"""

IMAGE_STYLE_PROMPT = """You are a world-class cinematographer and colorist.
Analyze the provided image and extract its cinematic style to populate a Director's Vision.

Focus on:
1. Genre/Tone: what film genre does this look like, and what is the mood?
2. Color Palette: the dominant colors; warm, cool, desaturated, neon or pastel.
3. Inspirations: the visual style in terms of cinematic references (e.g. "Wes Anderson symmetry").

Return a JSON object with the keys genre, tone, colorPalette and inspirations."""

CHAT_PROMPT = """You are a helpful AI assistant for filmmakers. Your tone is knowledgeable and encouraging.
Continue the following conversation:
{history}
gemini:"""

FIELD_PROMPTS = {
    "logline": 'Based on the story title "{title}", write a compelling and concise logline.',
    "character": "Based on the story context (Title: {title}, Logline: {logline}), write a short, intriguing description for a character.",
    "setting": "Based on the story context (Title: {title}, Logline: {logline}), write a short, atmospheric description for a setting.",
}

SOUNDSCAPE_PROMPT = """{brief}

Acting as the Sound Designer, generate a complete soundscape for the following scene.
For each shot, create a detailed, emotionally motivated audio plan.

Story Context:
- Title: {title}
- Logline: {logline}

Director's Vision:
- Genre/Tone: {genre} / {tone}
- Inspirations: {inspirations}

Shot List to Analyze:
---
{shot_list}
---

Return a JSON object with a key "soundscape": an array with one entry per shot containing
'shotId', 'score', 'sfx' (key sound effects) and 'ambience' (background and foley)."""

INITIAL_SCENE_PROMPT = """{brief}

Create an initial shot list of 5-7 shots for a scene. All shots must be 9:16 and dynamic.

Scene's Emotional Core: "{emotional_core}"

{story_block}

{vision_block}
{option_rules}

Return a JSON object with a key "shots"."""

SHOT_DETAILS_PROMPT = """{brief}

For the given shot description, determine the optimal cinematic choices for a 9:16 frame.

Scene's Emotional Core: "{emotional_core}"

Story Context:
- Title: {title}
- Logline: {logline}

Director's Vision:
- Genre/Tone: {genre} / {tone}
- Inspirations: {inspirations}

Shot Description: "{description}"
{option_rules}

Return a single JSON object describing the shot."""

DIRECTOR_NOTE_PROMPT = """{brief}

Analyze the following shot and write ONLY the text of the director's note, following the Justification Mandate.

Scene's Emotional Core: "{emotional_core}"
Story: {logline}
Vision: {genre}, {tone}, inspired by {inspirations}
Shot Description: {description}
Current Cinematic Choices: {shot_type}, {camera_angle}, {camera_movement}"""

CINEMATIC_PROMPT = """You are a master prompt engineer and a visionary cinematographer specializing in vertical video.
Rewrite the following prompt to be more cinematic, descriptive and evocative.
Add nuances of mood, texture, lighting, emotional weight and dynamic movement.
Preserve the core intent of the original prompt but elevate it for a 9:16 aspect ratio.

Original Prompt:
---
{prompt}
---

Enhanced Cinematic Prompt:"""

SEARCH_ENRICHMENT_PROMPT = """Enrich the following description for a fictional story by incorporating real-world details from Google Search.
Subject: "{subject}"
Existing Description: "{description}"

Find interesting, accurate and evocative details about the subject (or things related to it) and weave them into a more detailed and compelling paragraph. If the existing description is empty, write a new one from scratch based on the subject."""


def _option_rules() -> str:
    lines = ["Enumerated fields MUST use one of these exact values:"]
    lines.extend(f"- {name}: " + " | ".join(options) for name, options in OPTION_FIELDS)
    return "\n".join(lines)


def _vision_block(vision: Optional[DirectorVision]) -> str:
    if vision is None:
        return ""
    return (
        "\nVISUAL STYLE GUIDE:\n---\n"
        f"Genre: {vision.genre}\nTone: {vision.tone}\n"
        f"Color Palette: {vision.color_palette}\nInspirations: {vision.inspirations}\n"
        "---\nEnsure the shots strictly adhere to this visual style.\n"
    )


def _story_block(story: Story) -> str:
    lines = ["Story Context:", f"- Title: {story.title}", f"- Logline: {story.logline}"]
    if story.characters:
        lines.append("- Characters: " + "; ".join(f"{c.name}: {c.description}" for c in story.characters))
    if story.setting:
        lines.append(f"- Setting: {story.setting.name}: {story.setting.description}")
    return "\n".join(lines)


def shot_list_request(
    script: str,
    director_instructions: str = "",
    vision: Optional[DirectorVision] = None
) -> CreativeRequest:
    instructions_block = (
        f"\nDIRECTOR'S INSTRUCTIONS:\n---\n{director_instructions}\n---\n"
        if director_instructions else ""
    )
    prompt = SHOT_LIST_PROMPT.format(
        brief=CREATIVE_TEAM_BRIEF,
        vision_block=_vision_block(vision),
        instructions_block=instructions_block,
        option_rules=_option_rules(),
        script=script,
    )
    compact = SHOT_LIST_COMPACT.format(
        script=script[:LOCAL_SCRIPT_LIMIT],
        instructions=director_instructions or "None",
        vision=f"{vision.genre}, {vision.tone}" if vision else "Not specified",
        shot_type=SHOT_TYPES[0],
        camera_angle=CAMERA_ANGLES[0],
        camera_movement=CAMERA_MOVEMENTS[0],
    )
    return CreativeRequest(
        CreativeTask.SCRIPT_TO_SHOTLIST, prompt, schema=ShotListResult, compact_prompt=compact
    )


def style_request(script: str) -> CreativeRequest:
    return CreativeRequest(
        CreativeTask.STYLE_SUGGESTION,
        STYLE_PROMPT.format(script=script),
        schema=StyleSuggestions,
        compact_prompt=STYLE_COMPACT.format(script=script[:800]),
    )


def image_style_request(image: bytes, mime_type: str = "image/jpeg") -> CreativeRequest:
    return CreativeRequest(
        CreativeTask.IMAGE_STYLE_ANALYSIS,
        IMAGE_STYLE_PROMPT,
        schema=DirectorVision,
        image=image,
        image_mime_type=mime_type,
    )


def chat_request(history: Sequence[ChatMessage]) -> CreativeRequest:
    formatted = "\n".join(f"{m.sender}: {m.text}" for m in history)
    return CreativeRequest(CreativeTask.FREE_TEXT_CHAT, CHAT_PROMPT.format(history=formatted))


def field_suggestion_request(field: str, story: Story) -> CreativeRequest:
    if field not in SUGGESTION_FIELDS:
        raise ValueError(f"Unknown suggestion field '{field}'; expected one of: {', '.join(SUGGESTION_FIELDS)}")
    prompt = FIELD_PROMPTS[field].format(title=story.title, logline=story.logline)
    return CreativeRequest(CreativeTask.FIELD_SUGGESTION, prompt, max_output_tokens=512)


def soundscape_request(story: Story, vision: DirectorVision, shots: List[Shot]) -> CreativeRequest:
    shot_list = "\n".join(
        f"Shot {i} (ID: {shot.id}): {shot.description}" for i, shot in enumerate(shots, 1)
    )
    prompt = SOUNDSCAPE_PROMPT.format(
        brief=CREATIVE_TEAM_BRIEF,
        title=story.title,
        logline=story.logline,
        genre=vision.genre,
        tone=vision.tone,
        inspirations=vision.inspirations,
        shot_list=shot_list,
    )
    return CreativeRequest(CreativeTask.SOUNDSCAPE, prompt, schema=SoundscapeResult)


def initial_scene_request(story: Story, vision: DirectorVision, emotional_core: str) -> CreativeRequest:
    prompt = INITIAL_SCENE_PROMPT.format(
        brief=CREATIVE_TEAM_BRIEF,
        emotional_core=emotional_core,
        story_block=_story_block(story),
        vision_block=_vision_block(vision),
        option_rules=_option_rules(),
    )
    return CreativeRequest(CreativeTask.INITIAL_SCENE, prompt, schema=ShotList)


def shot_details_request(
    story: Story,
    vision: DirectorVision,
    shot_description: str,
    emotional_core: str
) -> CreativeRequest:
    prompt = SHOT_DETAILS_PROMPT.format(
        brief=CREATIVE_TEAM_BRIEF,
        emotional_core=emotional_core,
        title=story.title,
        logline=story.logline,
        genre=vision.genre,
        tone=vision.tone,
        inspirations=vision.inspirations,
        description=shot_description,
        option_rules=_option_rules(),
    )
    return CreativeRequest(CreativeTask.SHOT_DETAILS, prompt, schema=Shot)


def director_note_request(
    story: Story,
    vision: DirectorVision,
    shot: Shot,
    emotional_core: str
) -> CreativeRequest:
    prompt = DIRECTOR_NOTE_PROMPT.format(
        brief=CREATIVE_TEAM_BRIEF,
        emotional_core=emotional_core,
        logline=story.logline,
        genre=vision.genre,
        tone=vision.tone,
        inspirations=vision.inspirations,
        description=shot.description,
        shot_type=shot.shot_type,
        camera_angle=shot.camera_angle,
        camera_movement=shot.camera_movement,
    )
    return CreativeRequest(CreativeTask.DIRECTOR_NOTE, prompt)


def cinematic_prompt_request(prompt: str) -> CreativeRequest:
    return CreativeRequest(CreativeTask.CINEMATIC_PROMPT, CINEMATIC_PROMPT.format(prompt=prompt))


def search_enrichment_request(subject: str, existing_description: str = "") -> CreativeRequest:
    """Hosted only: the answer is grounded with the Google Search tool."""
    prompt = SEARCH_ENRICHMENT_PROMPT.format(subject=subject, description=existing_description)
    return CreativeRequest(CreativeTask.SEARCH_ENRICHMENT, prompt, use_search=True)
