"""Instruction blocks and structured-output schemas for every content type.

Each ``*_request`` function is a pure mapping from context data to a
``GenerationRequest``; nothing here talks to the network.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

from .ai_client import GenerationRequest, InlineImage
from .models import AnalysisResult, AssetType, BrandIdentity

TITLE_MAX_CHARS = 75
TITLE_RECOMMENDED_CHARS = 45
SHORT_DESCRIPTION_MAX_CHARS = 132
NAMES_PER_TYPE = 6
SHORT_DESCRIPTION_COUNT = 6

CWS_SPECS = f"""
Chrome Web Store Optimization Rules:
1. Title Limit: Absolute max {TITLE_MAX_CHARS} characters. Recommended < {TITLE_RECOMMENDED_CHARS} characters.
2. Short Description: Strictly under {SHORT_DESCRIPTION_MAX_CHARS} characters. Must be catchy.
3. Iconography: Optimized for 128x128px (Main) and 16x16px (Toolbar).
4. Keywords: Focus on high-intent search terms.
"""

ANALYST_INSTRUCTION = f"""You are an elite ASO (App Store Optimization) strategist, Marketing Research Professional, Product & Customer Psychology Expert, Google Trends Analyzer, and Business Strategy Developer.

Your goal is to perform a deep-dive analysis of a project idea for a Chrome Extension.
You must analyze the input through four lenses:
1. CUSTOMER PSYCHOLOGY: What are the hidden pain points? Why would a user NEED this?
2. MARKET ANALYSIS: Where does this fit in the competitive landscape?
3. SEO/ASO STRATEGY: What are the high-value intent keywords that will actually drive traffic?
4. BUSINESS STRATEGY: How can this scale or provide immediate value?

REAL PROJECT VALIDATION:
Set "isJunk" to true ONLY if the input is absolute gibberish (e.g., "asdfghjkl", "123456", random characters) or does not contain any discernible intent.
IMPORTANT: Vague or short descriptions like "a simple timer" or "color picker extension" are NOT junk. If you can understand what the app does, it is NOT junk.

CRITICAL OUTPUT RULES:
1. "tone" field MUST be an array of exactly 3-5 adjectives.
2. "targetAudience" must be concise (under 20 words).
3. "seoStrategy" should be a high-level plan (30-50 words).
4. "marketAnalysis" should identify the niche and competitive advantage (30-50 words).
5. "customerPsychology" should explain the user's "Jobs to be Done" (30-50 words).
6. Do NOT provide explanations outside of the JSON.
{CWS_SPECS}"""

NAMING_INSTRUCTION = f"""You are a world-class Brand Strategist and SEO Maven.
Your goal is to generate names that are both memorable (Creative) and highly searchable (SEO).

For CREATIVE names, use techniques like:
1. WORD FUSION (e.g., Shopify, Pinterest).
2. LETTER SWAPS/Omissions (e.g., Flickr, Tumblr).
3. FOREIGN LANGUAGE (Using meaningful words from Latin, Greek, Japanese, etc.).
4. SYNESTHESIA (Metaphors relating to speed, color, or texture).

For SEO names, focus on:
1. High-intent keyword incorporation.
2. Clarity and directness.

SCORING:
Score each name from 0-100 based on:
- Brandability (Is it unique and catchy?)
- SEO Potential (Will it rank for intent?)
- Relevance (Does it match the app's purpose?)

Ensure all titles (Name + Tagline) stay well within the {TITLE_MAX_CHARS}-character Chrome Web Store limit.
Return valid JSON only."""

DESCRIPTION_INSTRUCTION = f"""You are a world-class ASO (App Store Optimization) Copywriter.
Your goal is to write high-converting Short Descriptions for the Chrome Web Store.

STRATEGY:
1. SEO FIRST: Weave in high-volume keywords naturally.
2. HOOK: Start with a strong verb or benefit.
3. USER BEHAVIOR: Address what the user is looking for (e.g., "Save time", "Easy-to-use").
4. LIMIT: Absolute max {SHORT_DESCRIPTION_MAX_CHARS} characters.

SCORING:
Score each description (0-100) based on:
- ASO Potential (Keyword integration)
- Conversion Rate (How likely is a user to click?)
- Clarity (Is the value clear in <{SHORT_DESCRIPTION_MAX_CHARS} chars?)

Return valid JSON only."""

LONG_DESCRIPTION_INSTRUCTION = """You are an Elite Creative Copywriter and Product Psychologist.
Your goal is to write a highly converting "Long Description" that speaks directly to user needs.

CORE PERSONA:
- You are NOT a robot. You are a human storyteller.
- You strictly adhere to the provided "Brand Tone" (e.g., if "Witty", be funny; if "Professional", be serious).

CRITICAL FORMATTING RULES:
1. NO MARKDOWN SYNTAX. Do not use #, ##, ***, or [links].
2. HEADERS: Use CAPITAL LETTERS with emoji decorations for sections.
3. SEPARATORS: Use dashed lines (e.g., "--------------------------------") to break up sections.
4. LISTS: Use emojis as bullet points.
5. EMPHASIS: Use CAPITALS for emphasis instead of bold.
6. LAYOUT: Use spacing effectively to make it scannable.

WRITING STRATEGY:
1. THE HOOK: Start with a question or statement that identifies the user's biggest pain point.
2. THE SOLUTION: Introduce the app as the "Magic Pill" solution.
3. THE FEATURES: List features, but ALWAYS pair them with a benefit (e.g., "Fast Encoding" -> "Save hours of waiting").
4. THE TONE: Match the app's specific brand voice perfectly.
"""

PRIVACY_POLICY_INSTRUCTION = """You are a Legal Compliance Expert for the Chrome Web Store.
Your task is to generate a 'Privacy Policy' description for the 'Privacy practices' tab of the store listing, OR a standalone markdown policy document.

RULES:
1. You MUST justify every permission found in the 'manifest.json' (permissions, host_permissions).
2. Adhere to the 'Data Minimization' and 'Single Purpose' policies.
3. If no remote server is used, explicitly state that data stays local.
4. Tone: Transparent, Legal but readable, Trust-building.
5. Format: STRICT MARKDOWN ONLY. Do NOT include phrases like "Here is your policy". Start directly with the title.
6. DATE: Use the provided current date for the "Last Updated" or "Effective Date" section.
"""

DESIGNER_INSTRUCTION = """You are an expert high-fidelity prompt engineer.
Your goal is to craft precise, evocative prompts for an AI image generator to create premium logos.
You MUST prioritize Industry Relevance and a "Clean & Friendly" aesthetic.

TECHNICAL RULES:
1. **STRICTLY CLEAN**: Minimize details. Imagery MUST be high-impact and readable at small sizes.
2. **FRIENDLY VIBE**: Use friendly smiles, "cuteness", and approachable shapes where applicable.
3. **NO THICK OUTLINES**: Use rim lighting and depth instead of black lines.
4. **SUBTLE GRADIENTS**: Avoid harsh color jumps; use smooth, minimal transitions.
5. **HARMONIOUS COLORS**: Utilize the provided brand palette across the entire composition without strict subject/background splits.
"""

BRAND_IDENTITY_INSTRUCTION = """You are a Senior Brand Designer and Master Color Strategist.
Generate a distinctive, high-end brand identity for a Chrome Extension.
Do NOT default to generic "Tech Blues" unless the tone strictly demands it.

COLOR STRATEGY:
1. **Harmony**: Choose the BEST color harmony for the specific Brand Tone (e.g., Complementary for high energy, Analogous for calm, Triadic for balance). Do NOT be limited to one type.
2. **Vibe Match**:
   - If "Playful/Fun": Use high saturation, warm hues (yellows, pinks, oranges).
   - If "Professional/Trusted": Use deep, rich tones (navy, forest green, slate) with crisp accents.
   - If "Futuristic/Tech": Use electric neons against deep dark backgrounds.
   - If "Minimalist": Use sophisticated neutrals with one bold "Pop" color.

COLOR SPECIFICATIONS:
1. **2 Primary Colors (Background & Core)**: Foundations of the UI. Distinct but harmonious; avoid "muddy" mid-tones.
2. **2 Accent Colors (Subject & Brand Mark)**: Specific, memorable hues that stand out against the primaries.
3. **Neutrals**: Crisp White (#ffffff), Deep Modern Black (e.g. #0a0a0a), and a balanced Gray.
4. **Highlight Neon**: Cyber-electric glow. 100% Saturation, High Brightness.

GENERATE A TYPOGRAPHY SYSTEM (2 FONTS):
1. **Primary / Display Font**: Usage: Logos, headlines. Personality: Expressive, legible.
2. **Secondary / Text Font**: Usage: Body text, UI labels. Personality: Neutral, optimized for screens.

TYPOGRAPHY RULES:
1. **Google Fonts Only**: STRICTLY use only free, commercial-use friendly Google Fonts (e.g. Inter, Roboto, Montserrat, Poppins, Lato).
2. **Pairing Logic**: Contrast in structure (e.g. Serif + Sans, or Geometric Sans + Humanist Sans).

CRITICAL OUTPUT RULES:
1. Output STRICT 7-character HEX codes (e.g., #FF5733).
2. HEX codes MUST match regex: ^#[0-9A-Fa-f]{6}$
3. ABSOLUTELY NO 8-digit hex codes.
4. Do NOT output strings of zeros.
5. Return ONLY valid JSON.
6. reasoning: Explain your specific Color Harmony choice and how it captures the unique "Customer Psychology" of this specific app.
"""

SCREENSHOT_COPY_INSTRUCTION = """You are a UX writer and marketing expert.
Your task is to look at a UI screenshot and generate a punchy, benefit-driven Headline (max 4 words) and a Subheadline (max 10 words).
It must describe the specific feature shown in the image.

Also, identify the single most important word or 2-word phrase in your generated Headline to highlight.
The "highlightText" MUST be an exact substring of the "headline".

Tone: Professional, Energetic, Direct.
Return JSON only."""

SMALL_TILE_COPY_INSTRUCTION = """You are an expert ASO Copywriter.
Generate a punchy, high-impact headline (STRICTLY 2-5 words) and a short subheadline (max 8 words) for a "Small Promo" tile.
The copy must be based on the app's brand tone, core features, and description.
Do NOT mention specific UI elements as there might not be a screenshot.

Return JSON with:
- headline: 2-5 words.
- subheadline: Catchy summary.
- highlightText: A single word from the headline to emphasize.

Return JSON only."""

STYLE_ANALYSIS_INSTRUCTION = """You are an expert Fine Art Analyst and Prompt Engineer.
Analyze the provided image and describe its "Visual Style" in technical terms for an AI image generator.

FOCUS ON:
1. Composition (Camera angle, framing, depth of field).
2. Lighting (Source, intensity, shadows, highlights).
3. Textures & Materials (Glossy, matte, metallic, organic).
4. Artistic Technique (3D render style, flat vector, oil painting, sketch).
5. Line Quality & Shape Language (Thick, thin, sharp, rounded, geometric).

CRITICAL RULE:
DO NOT mention the colors of the source image. We will override colors with our own brand palette.
Focus ONLY on the "Style" and "Vibe".

Return a concise paragraph (max 40 words) of technical prompt tags."""

ANALYSIS_RETRY_HINT = (
    "IMPORTANT: Your previous output was incomplete or malformed. "
    "Ensure ALL fields are filled with professional, high-quality analysis."
)

REFERENCE_PRIORITY = (
    "CRITICAL: PRIORITIZE THE VISUAL STYLE, LIGHTING, AND COMPOSITION OF THE ATTACHED "
    "REFERENCE IMAGE. THIS IS MORE PROMINENT THAN THE TEXT DESCRIPTION."
)

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": _STRING}

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "isJunk": {"type": "boolean"},
        "category": _STRING,
        "targetAudience": _STRING,
        "coreFeatures": _STRING_LIST,
        "primaryKeywords": _STRING_LIST,
        "tone": _STRING_LIST,
        "seoStrategy": _STRING,
        "marketAnalysis": _STRING,
        "customerPsychology": _STRING,
    },
    "required": ["isJunk"],
}

NAME_ITEM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _STRING,
        "tagline": _STRING,
        "type": {"type": "string", "enum": ["SEO", "CREATIVE"]},
        "reasoning": _STRING,
        "score": {"type": "number"},
        "strategy": _STRING,
    },
    "required": ["name", "tagline", "type", "reasoning", "score", "strategy"],
}

DESCRIPTION_ITEM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "text": _STRING,
        "score": {"type": "number"},
        "reasoning": _STRING,
        "keywordsUsed": _STRING_LIST,
    },
    "required": ["text", "score", "reasoning", "keywordsUsed"],
}

NAMES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"names": {"type": "array", "items": NAME_ITEM_SCHEMA}},
    "required": ["names"],
}

DESCRIPTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"descriptions": {"type": "array", "items": DESCRIPTION_ITEM_SCHEMA}},
    "required": ["descriptions"],
}

BRAND_IDENTITY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "colors": {
            "type": "object",
            "properties": {
                slot: _STRING
                for slot in (
                    "primary1", "primary2", "accent1", "accent2",
                    "neutral_white", "neutral_black", "neutral_gray", "highlight_neon",
                )
            },
        },
        "typography": {
            "type": "object",
            "properties": {"headingFont": _STRING, "bodyFont": _STRING, "reasoning": _STRING},
        },
        "visualStyleDescription": _STRING,
    },
}

SLIDE_COPY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"headline": _STRING, "subheadline": _STRING, "highlightText": _STRING},
    "required": ["headline", "subheadline", "highlightText"],
}


def format_policy_date(day: date) -> str:
    """Format a date as ``Month D, YYYY`` (e.g. "March 5, 2025")."""
    return f"{day:%B} {day.day}, {day.year}"


def _analysis_json(analysis: AnalysisResult) -> str:
    return analysis.model_dump_json(exclude={"is_junk"})


def analysis_request(idea_text: str, retry_hint: bool = False) -> GenerationRequest:
    """Request a market analysis of an (already truncated) idea description."""
    hint = ANALYSIS_RETRY_HINT if retry_hint else ""
    message = f'''Analyze the following Chrome Extension idea / description with your full expert persona:
"""
{idea_text}
"""
{hint}

Return a JSON object with:
- isJunk: Boolean. Set to true ONLY if the input is not a real project idea.
- category: The primary store category.
- targetAudience: A short description of the user (Max 20 words).
- coreFeatures: An array of 3-5 main features (Concise).
- primaryKeywords: An array of 5-8 SEO keywords (High-volume, high-intent).
- tone: An array of exactly 3-5 adjectives describing the brand.
- seoStrategy: A strategic approach to ASO.
- marketAnalysis: Competitive landscape summary.
- customerPsychology: User motivation analysis.'''

    return GenerationRequest(
        system_instruction=ANALYST_INSTRUCTION,
        user_message=message,
        response_schema=ANALYSIS_SCHEMA,
        schema_name="project_analysis",
        temperature=0.1,
    )


def names_request(analysis: AnalysisResult, per_type: int = NAMES_PER_TYPE) -> GenerationRequest:
    message = (
        f"Based on this expert analysis: {_analysis_json(analysis)}, generate {per_type} "
        f"SEO-optimized names and {per_type} Creative Brand names. "
        'Return them as {"names": [...]}.'
    )
    return GenerationRequest(
        system_instruction=NAMING_INSTRUCTION,
        user_message=message,
        response_schema=NAMES_SCHEMA,
        schema_name="name_candidates",
    )


def short_descriptions_request(
    analysis: AnalysisResult, name: str, count: int = SHORT_DESCRIPTION_COUNT
) -> GenerationRequest:
    keywords = ", ".join(analysis.primary_keywords)
    message = (
        f"App Name: {name}. Analysis: {_analysis_json(analysis)}. Generate {count} descriptions "
        f"under {SHORT_DESCRIPTION_MAX_CHARS} chars incorporating: {keywords}. "
        'Return them as {"descriptions": [...]}.'
    )
    return GenerationRequest(
        system_instruction=DESCRIPTION_INSTRUCTION,
        user_message=message,
        response_schema=DESCRIPTIONS_SCHEMA,
        schema_name="short_description_candidates",
    )


def long_description_request(
    analysis: AnalysisResult, name: str, short_description: str
) -> GenerationRequest:
    """Request the plain-text long store description."""
    message = f"""App Name: {name}
Short Description: {short_description}

DEEP ANALYSIS CONTEXT:
- Brand Tone: {analysis.tone}
- Target Audience: {analysis.target_audience}
- Customer Pain Points/Psychology: {analysis.customer_psychology}
- Core Unique Features: {", ".join(analysis.core_features)}

Reference Example Style (STRUCTURE ONLY - USE AS LAYOUT GUIDE):
\"\"\"
BOOST YOUR PRODUCTIVITY WITH THIS APP
----------------------------------------

Do you struggle with X? We have the solution.

KEY FEATURES

FAST CONVERSION
Convert files in seconds without losing quality.

SECURE & PRIVATE
Everything happens locally. No data leaves your browser.

----------------------------------------

HOW TO USE

1. Install the extension
2. Open any PDF
3. Click the button to edit!

----------------------------------------

WHY CHOOSE US?
- 100% Free
- No Sign-up required
- Dark mode support

DOWNLOAD NOW AND START CREATING!
\"\"\"

Task: Generate a "Long Description" for the Chrome Web Store.

EXECUTION STEPS:
1. Analyze the "Customer Pain Points" and write a Killer Hook opening.
2. Adopt the "{analysis.tone}" persona completely.
3. Highlight the "Core Unique Features" using the Text/Emoji layout style.
4. Ensure the writing is persuasive, human, and creative.
5. OUTPUT RAW TEXT ONLY."""

    return GenerationRequest(
        system_instruction=LONG_DESCRIPTION_INSTRUCTION,
        user_message=message,
        schema_name="long_description",
    )


def manifest_permissions(manifest: Optional[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Extract ``permissions`` and ``host_permissions`` (empty lists when absent)."""
    manifest = manifest or {}
    return {
        "permissions": list(manifest.get("permissions") or []),
        "host_permissions": list(manifest.get("host_permissions") or []),
    }


def privacy_policy_request(
    app_name: str,
    analysis: AnalysisResult,
    manifest: Optional[Dict[str, Any]],
    today: date,
) -> GenerationRequest:
    perms = manifest_permissions(manifest)
    message = (
        f"App: {app_name}. Features: {', '.join(analysis.core_features)}. "
        f"Permissions: {json.dumps(perms['permissions'])}. "
        f"Host permissions: {json.dumps(perms['host_permissions'])}. "
        f"Write a markdown privacy policy dated {format_policy_date(today)}."
    )
    return GenerationRequest(
        system_instruction=PRIVACY_POLICY_INSTRUCTION,
        user_message=message,
        schema_name="privacy_policy",
    )


def enhance_privacy_policy_request(current_text: str, app_name: str, today: date) -> GenerationRequest:
    message = (
        f"Refine this policy for {app_name}: {current_text}. "
        f"Date: {format_policy_date(today)}. Output raw markdown."
    )
    return GenerationRequest(
        system_instruction=PRIVACY_POLICY_INSTRUCTION,
        user_message=message,
        schema_name="privacy_policy",
    )


def brand_identity_request(
    analysis: AnalysisResult, name: str, guidance: Optional[str] = None
) -> GenerationRequest:
    guidance_text = ""
    if guidance:
        guidance_text = (
            f'\nUSER GUIDANCE: The user specifically requested: "{guidance}". '
            "YOU MUST INCORPORATE THIS INTO THE COLOR PALETTE/IDENTITY."
        )
    message = (
        f"App: {name}. Tone: {analysis.tone}. Customer Psychology: {analysis.customer_psychology}."
        f"{guidance_text} Generate a high-end tetradic brand identity (colors, typography)."
    )
    return GenerationRequest(
        system_instruction=BRAND_IDENTITY_INSTRUCTION,
        user_message=message,
        response_schema=BRAND_IDENTITY_SCHEMA,
        schema_name="brand_identity",
    )


def screenshot_copy_request(image: InlineImage, app_name: str, tone: str) -> GenerationRequest:
    """Vision request for a slide headline, subheadline and highlight."""
    return GenerationRequest(
        system_instruction=SCREENSHOT_COPY_INSTRUCTION,
        user_message=f"Analyze screenshot for {app_name} with tone {tone}.",
        response_schema=SLIDE_COPY_SCHEMA,
        schema_name="screenshot_copy",
        image=image,
    )


def small_tile_copy_request(
    analysis: AnalysisResult, app_name: str, short_description: str
) -> GenerationRequest:
    message = (
        f"Generate small promo copy for {app_name}.\n"
        f"Description: {short_description}\n"
        f"Analysis: {_analysis_json(analysis)}\n\n"
        f"Tone: {analysis.tone}"
    )
    return GenerationRequest(
        system_instruction=SMALL_TILE_COPY_INSTRUCTION,
        user_message=message,
        response_schema=SLIDE_COPY_SCHEMA,
        schema_name="small_tile_copy",
    )


def style_reference_request(image: InlineImage) -> GenerationRequest:
    return GenerationRequest(
        system_instruction=STYLE_ANALYSIS_INSTRUCTION,
        user_message="Analyze visual style details.",
        schema_name="style_reference",
        image=image,
    )


def subject_brainstorm_request(
    analysis: AnalysisResult, app_name: str, subject_type: str, noun: str
) -> GenerationRequest:
    """Request ONE non-cliché icon subject (mascot, shape or symbol)."""
    message = f"""Brainstorm ONE {subject_type} for a premium app logo.
App Name: "{app_name}"
Category: {analysis.category}
Tone: {analysis.tone}
Keywords: {", ".join(analysis.primary_keywords)}

Rules:
1. OUTPUT THE SUBJECT NAME ONLY (e.g., "abstract cybernetic node", "minimalist geometric fox", "interconnected data sphere").
2. **AVOID CLICHES**: Do NOT use common tropes like "lightbulbs" for ideas, "rockets" for speed, "magnifying glasses" for search, or "shields" for security.
3. **High Uniqueness**: Brainstorm a metaphor that is distinct to this specific app's nuance.
4. **Style Alignment**: If Abstract/Geometric, avoid literal objects (like "book" or "pen"); focus on concepts (like "flow", "structure", "harmony").
"""
    return GenerationRequest(
        system_instruction=f"You are a creative brand strategist. Output only the short name of the {noun}.",
        user_message=message,
        schema_name="icon_subject",
        temperature=0.8,
    )


def color_context(
    brand: Optional[BrandIdentity],
    background_override: Optional[str] = None,
    subject_override: Optional[str] = None,
) -> str:
    """Colour guidance for an image prompt.

    Both overrides together produce a strict two-colour mapping; otherwise
    the five-colour brand palette is used. No brand means no colour guidance.
    """
    if brand is None:
        return ""
    if background_override and subject_override:
        return (
            f"STRICT COLOR MAPPING: Background MUST be exactly {background_override}. "
            f"The main subject/object MUST be exactly {subject_override}. "
            "Do not use other colors significantly."
        )
    palette = ", ".join(brand.colors.palette())
    return (
        f"STRICT COLOR PALETTE: [{palette}]. "
        "USE A PLAIN SOLID COLOR OR EXTREMELY SUBTLE GRADIENT FOR THE BACKGROUND."
    )


def style_instruction(
    styles: Dict[str, Any],
    style: str,
    asset_type: AssetType,
    app_name: str,
    analysis: AnalysisResult,
    brand: Optional[BrandIdentity] = None,
    subject: Optional[str] = None,
    user_subject: Optional[str] = None,
) -> str:
    """
    Fill the art-direction recipe for ``style``.

    Args:
        styles: Recipes as loaded by ``config.load_icon_styles``
        style: Visual style name
        asset_type: ICON or BANNER
        app_name: Extension name (3D Letter uses its initial)
        analysis: Analysis providing the category
        brand: Brand identity (banner colours)
        subject: Brainstormed subject for styles that need one
        user_subject: Subject supplied by the user; takes precedence

    Returns:
        The ``STYLE: ...`` instruction text
    """
    if asset_type == AssetType.BANNER:
        recipe = styles.get("banner", {}).get("instruction", "STYLE: STORE TILES. wide composition.")
        colors = brand.colors if brand else None
        return recipe.format(
            primary1=colors.primary1 if colors else "",
            primary2=colors.primary2 if colors else "",
        )

    entry = styles.get("styles", {}).get(style)
    fields = {
        "category": analysis.category,
        "initial": app_name[:1].upper(),
        "subject": user_subject or subject or "",
    }

    if user_subject:
        if entry and entry.get("user_subject_instruction"):
            return entry["user_subject_instruction"].format(**fields)
        base = styles.get("user_subject", {}).get("instruction", "STYLE: Premium icon of a {subject}.")
        suffix = entry.get("user_subject_suffix", "") if entry else ""
        return base.format(**fields) + suffix

    if not entry:
        return styles.get("default", {}).get("instruction", "STYLE: MODERN APP ICON. central logo mark.")
    return entry["instruction"].format(**fields)


def image_prompt_request(
    asset_type: AssetType,
    app_name: str,
    colors: str,
    style_text: str,
    style_reference: Optional[str] = None,
) -> GenerationRequest:
    """Request a finished image prompt from the designer persona."""
    priority = REFERENCE_PRIORITY if style_reference else ""
    parts = [
        "Role: Expert App Icon Designer.",
        f"Asset: {asset_type.value}.",
        f"App: {app_name}.",
        colors,
        style_text,
        priority,
        style_reference or "",
        "OUTPUT RAW PROMPT ONLY.",
    ]
    return GenerationRequest(
        system_instruction=DESIGNER_INSTRUCTION,
        user_message=" ".join(p for p in parts if p),
        schema_name="image_prompt",
    )
