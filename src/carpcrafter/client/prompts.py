"""Prompt text for the concept and visual calls, keyed by resource mode."""

from __future__ import annotations

from dataclasses import dataclass

from carpcrafter.models.invention import InventionRequest, ResourceMode


@dataclass(frozen=True)
class ModeBrief:
    """Persona and design rules the model follows for one resource mode."""

    role: str
    guidelines: tuple[str, ...]
    visual_style: str


MODE_BRIEFS: dict[ResourceMode, ModeBrief] = {
    ResourceMode.DIY: ModeBrief(
        role=(
            'You are a master "garden shed" inventor and carp fishing expert who builds '
            "effective tools from cheap materials found in hardware stores, supermarkets "
            "or a basic tackle box."
        ),
        guidelines=(
            "The invention must be buildable with basic tools (drill, glue, pliers).",
            "Use only accessible materials: PVC pipe, bottles, wire, rubber bands, foam, "
            "springs, washers, nuts and bolts.",
            "Avoid injection molding, advanced electronics, composites and proprietary sensors.",
            '"feasibilityScore" is ease of DIY construction; high means easy to build.',
            '"feasibilityAnalysis" explains the construction difficulty.',
            '"instructions" is a numbered list of build steps.',
        ),
        visual_style=(
            "rustic, handmade, workshop aesthetic, gritty, visible duct tape or glue, "
            "garage workbench background"
        ),
    ),
    ResourceMode.THREE_D_PRINT: ModeBrief(
        role=(
            "You are an expert in 3D printing for fishing tackle, designing functional parts "
            "for standard hobbyist FDM printers."
        ),
        guidelines=(
            "The invention must print on a standard hobbyist 3D printer.",
            "Suggest PLA, PETG, TPU or ABS/ASA as appropriate.",
            "Prefer print-in-place mechanisms, threads, snap-fits and modular parts.",
            '"feasibilityScore" is printability; high means few supports.',
            '"feasibilityAnalysis" gives slicer settings (infill, layer height, orientation).',
            '"instructions" is a numbered list of assembly or post-processing steps.',
        ),
        visual_style=(
            "3d printed texture, visible layer lines, matte pla plastic finish, clean tech "
            "background, rapid prototype aesthetic"
        ),
    ),
    ResourceMode.BAIT: ModeBrief(
        role=(
            "You are a legendary carp bait chef and fish nutritionist who creates "
            "high-attract, balanced recipes (boilies, stick mixes, glugs, particles)."
        ),
        guidelines=(
            "Invent a novel bait recipe using the angler's ingredients where listed.",
            '"materials" lists ingredients with quantities.',
            '"mechanism" explains the attraction profile: solubility, leakage, pH, digestion.',
            '"feasibilityScore" is ease of preparation.',
            '"feasibilityAnalysis" explains why the mix is safe and effective.',
            '"instructions" is the step-by-step recipe method.',
            "The visual prompt describes texture, colour and consistency.",
        ),
        visual_style=(
            "realistic food texture, moist appearance, macro food photography, crumbs, "
            "organic, appetizing for fish"
        ),
    ),
    ResourceMode.NORMAL: ModeBrief(
        role=(
            "You are a pragmatic carp fishing product designer of reliable, commercially "
            "viable tackle for the everyday angler."
        ),
        guidelines=(
            "Invent a practical tool or accessory that fits a standard tackle box.",
            "Use standard manufacturing (injection molding, machining) and common materials.",
            "Avoid complex electronics, 3D print artifacts and scavenged parts.",
            '"feasibilityScore" is commercial viability and practicality.',
            '"feasibilityAnalysis" explains why the product would sell and work.',
            '"instructions" is a user guide.',
        ),
        visual_style=(
            "clean product photography, matte green fishing tackle finish, studio lighting, "
            "neutral background, professional catalogue style"
        ),
    ),
    ResourceMode.PRO: ModeBrief(
        role=(
            "You are a world-class angling product designer and engineer specialising in "
            "future-tech carp fishing innovation."
        ),
        guidelines=(
            "The invention must be novel and viable for a high-end brand.",
            "Advanced materials, sensors and precision manufacturing are allowed.",
            '"feasibilityScore" is commercial viability.',
            '"feasibilityAnalysis" covers manufacturing and market analysis.',
            '"instructions" is a user guide.',
        ),
        visual_style="high tech, sleek, carbon fiber finish, product studio lighting",
    ),
}


def build_concept_prompt(request: InventionRequest) -> str:
    """Render the full concept prompt for *request*."""
    brief = MODE_BRIEFS[request.resource_mode]
    lines = [
        brief.role,
        "",
        f'The angler\'s challenge: "{request.challenge}"',
    ]
    if request.environment:
        lines.append(f"Fishing environment: {request.environment}")
    if request.available_supplies:
        lines.append(
            "Constraint: the angler has these materials/ingredients available: "
            f'"{request.available_supplies}". Prioritise using them.'
        )
    if request.weather is not None:
        w = request.weather
        lines.append(
            f"Current conditions: {w.temperature}°C, wind {w.wind_speed} km/h, "
            f"pressure {w.pressure} hPa, sky {w.condition}. Adapt the invention to them "
            "(high wind: heavy or sinking tools; low pressure: bottom feeding; "
            "cold: highly soluble baits)."
        )
    lines.append("")
    lines.append("Guidelines:")
    lines.extend(f"{i}. {rule}" for i, rule in enumerate(brief.guidelines, start=1))
    lines.append("")
    lines.append("Consider physics, hydrodynamics, biology and carp behaviour.")
    lines.append("Return the data in strictly structured JSON.")
    return "\n".join(lines)


def build_visual_prompt(visual_prompt: str, resource_mode: ResourceMode) -> str:
    """Wrap the concept's visual prompt with the mode's photographic style."""
    style = MODE_BRIEFS[resource_mode].visual_style
    return (
        f"Product photography concept shot: {visual_prompt}. {style}. High detail, "
        "cinematic lighting, photorealistic, 4k render style, macro shot, shallow depth "
        "of field."
    )


def _string_list(description: str) -> dict:  # type: ignore[type-arg]
    return {"type": "ARRAY", "items": {"type": "STRING"}, "description": description}


CONCEPT_RESPONSE_SCHEMA: dict = {  # type: ignore[type-arg]
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING", "description": "A catchy name for the tool or bait."},
        "tagline": {"type": "STRING", "description": "A short, punchy slogan."},
        "description": {"type": "STRING", "description": "What it is and what it does."},
        "mechanism": {"type": "STRING", "description": "How it works."},
        "materials": _string_list("Materials or ingredients."),
        "visualPrompt": {
            "type": "STRING",
            "description": "Descriptive prompt for a photorealistic concept image.",
        },
        "feasibilityScore": {"type": "INTEGER", "description": "Score from 1 to 100."},
        "feasibilityAnalysis": {"type": "STRING", "description": "Why it got that score."},
        "instructions": _string_list("Step-by-step guide."),
        "pros": _string_list("Benefits."),
        "cons": _string_list("Drawbacks."),
    },
    "required": [
        "name",
        "tagline",
        "description",
        "mechanism",
        "materials",
        "visualPrompt",
        "feasibilityScore",
        "feasibilityAnalysis",
        "instructions",
        "pros",
        "cons",
    ],
}
