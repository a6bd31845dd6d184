from __future__ import annotations

import logging
import random
import re
import secrets
import time
from typing import Optional

from marketing_factory.config import settings
from marketing_factory.llm.client import STUB_OUTPUT, LLMClient, LLMGenerationParams
from marketing_factory.schemas.marketing import (
    AdCopyResult,
    AdCopyVariation,
    CompetitorAnalysis,
    CompetitorEntry,
    HookVariation,
    InfluencerProfile,
    MarketingConstitution,
    MasterPrompt,
    MessagingFramework,
    ProjectAnalysis,
    Storyboard,
    StoryboardScene,
    VideoScript,
    VisualProfile,
    coerce_model,
)
from marketing_factory.services.json_extract import parse_json_array, parse_json_object

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "tr": "Turkish",
    "es": "Spanish",
    "de": "German",
    "fr": "French",
}

PERSONA_ARCHETYPES = (
    "The Visionary Innovator: forward-thinking, inspiring, always talking about the future",
    "The Friendly Mentor: warm, approachable, guides people with patience and humor",
    "The Bold Challenger: provocative, energetic, breaks conventions and challenges norms",
    "The Calm Expert: composed, authoritative, explains complex topics simply",
    "The Passionate Storyteller: emotional, creative, connects through narratives",
    "The Street-Smart Hustler: practical, direct, motivates with real-world experience",
    "The Quirky Creative: playful, unconventional, surprises with unexpected angles",
    "The Empathetic Connector: deeply caring, community-focused, builds trust naturally",
)
PERSONA_NAME_STYLES = (
    "a modern tech-inspired name",
    "a warm Mediterranean-sounding name",
    "an elegant European name",
    "a bold and punchy American name",
    "an artistic and creative name",
    "a cool and trendy East Asian-inspired name",
    "a sophisticated British-sounding name",
    "a vibrant Latin-inspired name",
)
PERSONA_BACKSTORY_THEMES = (
    "came from a completely different career and found their true calling",
    "grew up in a small town and built their way up through pure determination",
    "was a skeptic at first but became a passionate advocate after a life-changing experience",
    "has an academic/research background and brings intellectual depth",
    "is a serial entrepreneur who has seen both failures and successes",
    "traveled the world and gained unique perspectives from different cultures",
    "started as a community volunteer and discovered their talent for communication",
    "is a former artist/musician who brings creative energy to everything they do",
)
FALLBACK_PERSONA_NAMES = (
    "Zara Pulse",
    "Leo Vantis",
    "Maya Drift",
    "Kai Ember",
    "Nora Flux",
    "Ravi Crest",
    "Lina Spark",
    "Theo Blaze",
)

_PLATFORM_SCRIPT_SPECS = {
    "instagram": {"max_duration": 60, "format": "Reels", "tone": "Like telling a friend: energetic and sincere"},
    "tiktok": {"max_duration": 60, "format": "Short-form", "tone": "Natural, spontaneous, authentic"},
    "linkedin": {
        "max_duration": 120,
        "format": "Professional video",
        "tone": "A colleague sharing experience: authoritative but warm",
    },
}
_STORYBOARD_DURATIONS = {"linkedin": 60, "tiktok": 30}
_DEFAULT_STORYBOARD_DURATION = 45
_UGC_LENS = "iPhone 15 PRO front-camera (~23mm)"
_IMAGE_PROMPT_UNSAFE = re.compile(r"[^a-zA-Z0-9 ,.!?\-]")


def _language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, "English")


def _sanitize_image_prompt(text: str, limit: int) -> str:
    return _IMAGE_PROMPT_UNSAFE.sub("", text or "").strip()[:limit]


class MarketingAI:
    """Prompt construction and structured parsing for every LLM-backed marketing task."""

    def __init__(self, llm: Optional[LLMClient] = None) -> None:
        self.llm = llm or LLMClient()

    def _complete(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        system: Optional[str] = None,
        max_tokens: int = 2048,
    ) -> str:
        params = LLMGenerationParams(
            model=model or settings.LLM_DEFAULT_MODEL,
            max_tokens=max_tokens,
            temperature=0.7,
            system=system,
        )
        return self.llm.generate_text(prompt, params)

    # Project analysis

    def analyze_project(self, url: str, content: str, *, language: str = "en") -> ProjectAnalysis:
        lang = _language_name(language)
        prompt = f"""
Analyze the following website and provide a comprehensive marketing analysis.
IMPORTANT: Write ALL text values in {lang}.

URL: {url}
Website Content:
{content}

Respond with a JSON object containing:
{{
  "name": "Project/Company name",
  "description": "Brief description of the project",
  "valueProposition": "Main value proposition",
  "targetAudience": {{
    "demographics": ["demographic1", "demographic2"],
    "interests": ["interest1", "interest2"],
    "painPoints": ["painpoint1", "painpoint2"]
  }},
  "competitors": ["competitor1", "competitor2"],
  "brandTone": "brand tone description",
  "keywords": ["keyword1", "keyword2"]
}}

Respond ONLY with valid JSON, no additional text."""
        fallback = ProjectAnalysis(description=(content or "")[:200])
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_ANALYSIS_MODEL))
        return coerce_model(ProjectAnalysis, parsed, fallback=fallback)

    def generate_constitution(self, analysis: ProjectAnalysis, *, language: str = "en") -> MarketingConstitution:
        lang = _language_name(language)
        prompt = f"""
Based on the following project analysis, create a comprehensive Marketing Constitution.
IMPORTANT: Write ALL text values in {lang}, except visualDna which is always English.

Project: {analysis.name}
Description: {analysis.description}
Value Proposition: {analysis.valueProposition}
Target Audience: {analysis.targetAudience.model_dump_json()}
Brand Tone: {analysis.brandTone}

Respond with a JSON object:
{{
  "brandVoice": "Description of brand voice",
  "contentPillars": ["pillar1", "pillar2", "pillar3"],
  "messagingFramework": {{
    "hook": "Attention-grabbing hook",
    "problem": "Problem statement",
    "solution": "Solution presentation",
    "cta": "Call-to-action"
  }},
  "visualGuidelines": {{
    "colorPalette": ["#color1", "#color2"],
    "mood": "Visual mood",
    "style": "Visual style"
  }},
  "brandPersona": "If this brand were a person: how they dress, where they work, their energy",
  "visualDna": "English image-generation keywords capturing the brand, e.g. 'photorealistic, 8k UHD, warm studio lighting'"
}}

Respond ONLY with valid JSON."""
        fallback = MarketingConstitution(
            messagingFramework=MessagingFramework(solution=f"{analysis.name} solves this by..."),
        )
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_CREATIVE_MODEL))
        return coerce_model(MarketingConstitution, parsed, fallback=fallback)

    # Influencer persona

    def generate_influencer_profile(
        self,
        analysis: ProjectAnalysis,
        constitution: MarketingConstitution,
        *,
        gender: str = "female",
    ) -> InfluencerProfile:
        archetype = random.choice(PERSONA_ARCHETYPES)
        name_style = random.choice(PERSONA_NAME_STYLES)
        backstory_theme = random.choice(PERSONA_BACKSTORY_THEMES)
        seed = f"{int(time.time() * 1000):x}{secrets.token_hex(2)}"

        prompt = f"""
Create a UNIQUE AI Influencer character profile for marketing the following project.
Generation seed: {seed}. Use it to ensure uniqueness.

Project: {analysis.name}
Description: {analysis.description}
Target Audience: {analysis.targetAudience.model_dump_json()}
Brand Voice: {constitution.brandVoice}
Visual Style: {constitution.visualGuidelines.style}
Gender: {gender}

CREATIVE DIRECTION (follow this closely):
- Personality archetype: {archetype}
- Name style: Give them {name_style}
- Backstory theme: This character {backstory_theme}

The AI influencer should be a virtual character that:
- Has a memorable, UNIQUE first and last name
- Has a rich backstory explaining who they are and why they promote this brand
- Embodies the brand values and connects emotionally with the target audience

Respond with a JSON object:
{{
  "name": "First and last name",
  "personality": "Personality traits, communication style and tone of voice (2-3 sentences)",
  "backstory": "A mini biography following the theme above (3-5 sentences)",
  "appearanceDescription": "Detailed visual description for AI generation",
  "visualProfile": {{
    "gender": "{gender}",
    "ageRange": "25-35",
    "style": "business casual/casual/formal",
    "features": "Key visual features"
  }}
}}

Respond ONLY with valid JSON."""

        fallback = self.fallback_influencer_profile()
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_ANALYSIS_MODEL))
        profile = coerce_model(InfluencerProfile, parsed, fallback=fallback)
        if profile is fallback:
            logger.info("Influencer persona fell back to canned profile", extra={"name": profile.name})
        return profile.model_copy(
            update={"visualProfile": profile.visualProfile.model_copy(update={"gender": gender})}
        )

    @staticmethod
    def fallback_influencer_profile() -> InfluencerProfile:
        name = FALLBACK_PERSONA_NAMES[random.randrange(len(FALLBACK_PERSONA_NAMES))]
        return InfluencerProfile(
            name=name,
            personality=(
                "Friendly, professional, and enthusiastic about technology. Speaks with confidence and warmth, "
                "making complex things feel simple."
            ),
            backstory=(
                f"{name} is a passionate digital creator who discovered their calling in connecting innovative "
                "brands with the people who need them most. Their journey started unexpectedly, but every "
                "experience shaped them into the authentic voice they are today."
            ),
            appearanceDescription="A modern, professional-looking AI character with a warm smile",
            visualProfile=VisualProfile(),
        )

    # Video content

    def generate_hook_variations(
        self, analysis: ProjectAnalysis, platform: str, *, language: str = "en"
    ) -> list[HookVariation]:
        prompt = f"""
You are a viral content strategist. Create 5 HOOK variations for the first 3 seconds of a {platform} marketing video.

Project: {analysis.name}
Value: {analysis.valueProposition}
Target: {analysis.targetAudience.model_dump_json()}

Each hook must stop the viewer from scrolling. Use these 5 styles:
1. question
2. shock
3. curiosity
4. pain-point
5. social-proof

IMPORTANT: Write ALL hooks in {_language_name(language)}.

Respond ONLY with a valid JSON array:
[
  {{"id": 1, "text": "Hook text (max 15 words)", "style": "question", "estimatedImpact": "high"}}
]"""
        raw = self._complete(
            prompt,
            model=settings.LLM_CREATIVE_MODEL,
            system="You are a viral content expert who writes hooks that stop people from scrolling.",
        )
        items = parse_json_array(raw)
        hooks: list[HookVariation] = []
        for index, item in enumerate(items or [], start=1):
            if not isinstance(item, dict) or not item.get("text"):
                continue
            hook = coerce_model(HookVariation, {"id": item.get("id") or index, **item}, fallback=None)
            if hook is not None:
                hooks.append(hook)
        if not hooks:
            hooks = [HookVariation(id=1, text=f"Meet {analysis.name}!", style="curiosity", estimatedImpact="medium")]
        return hooks

    def generate_storyboard(
        self,
        analysis: ProjectAnalysis,
        constitution: MarketingConstitution,
        hooks: list[HookVariation],
        platform: str,
        *,
        language: str = "en",
    ) -> Storyboard:
        duration = _STORYBOARD_DURATIONS.get(platform, _DEFAULT_STORYBOARD_DURATION)
        best_hook = next((hook for hook in hooks if hook.estimatedImpact == "high"), hooks[0] if hooks else None)
        hook_text = best_hook.text if best_hook else f"Meet {analysis.name}!"

        prompt = f"""You are a professional video director creating a STORYBOARD for a {platform} marketing video.
Total duration: {duration} seconds.

Project: {analysis.name}
Description: {analysis.description}
Value Proposition: {analysis.valueProposition}
Features/Keywords: {", ".join(analysis.keywords)}
Brand Voice: {constitution.brandVoice}
Brand Colors: {", ".join(constitution.visualGuidelines.colorPalette)}
Visual DNA: {constitution.visualDna}
Brand Persona: {constitution.brandPersona}

Selected Hook: "{hook_text}"

Create a scene-by-scene storyboard following Hook, Problem, Solution, CTA.
It should feel like real creator UGC, not a corporate ad. All narration in {_language_name(language)}.

Respond ONLY with valid JSON:
{{
  "scenes": [
    {{
      "sceneNumber": 1, "startSecond": 0, "endSecond": 3,
      "narration": "Hook text", "visualDescription": "...", "screenContent": "",
      "cameraDirection": "Close-up", "emotion": "curious",
      "lens": "{_UGC_LENS}", "lighting": "...", "performanceDirection": "...",
      "ugcKeywords": ["smartphone selfie", "handheld realism"]
    }}
  ],
  "problemSolutionMap": [
    {{"problem": "User problem", "feature": "Feature that solves it", "videoMoment": "Scene 3 (12-18s)"}}
  ]
}}"""
        raw = self._complete(
            prompt,
            model=settings.LLM_CREATIVE_MODEL,
            system="You are an award-winning video director who creates storyboards that feel cinematic yet authentic.",
            max_tokens=4096,
        )
        parsed = parse_json_object(raw) or {}
        base = {
            "hookVariations": [hook.model_dump() for hook in hooks],
            "selectedHook": best_hook.id if best_hook else None,
            "totalDuration": duration,
            "platform": platform,
        }
        fallback = Storyboard(**base, scenes=self._fallback_scenes(analysis, hook_text, duration))
        if not parsed.get("scenes"):
            return fallback
        return coerce_model(
            Storyboard,
            {
                **base,
                "scenes": parsed.get("scenes"),
                "problemSolutionMap": parsed.get("problemSolutionMap") or [],
            },
            fallback=fallback,
        )

    @staticmethod
    def _fallback_scenes(analysis: ProjectAnalysis, hook_text: str, duration: int) -> list[StoryboardScene]:
        middle = int(duration * 0.7)
        return [
            StoryboardScene(
                sceneNumber=1,
                startSecond=0,
                endSecond=3,
                narration=hook_text,
                visualDescription="Close-up of influencer looking at camera with a wake-up call expression",
                cameraDirection="Close-up",
                emotion="excited",
                lens=_UGC_LENS,
                lighting="bright window/light from side (Rembrandt style)",
                performanceDirection="looks directly into lens, eyebrows raised, slight lean forward",
                ugcKeywords=["smartphone selfie", "handheld realism", "raw unfiltered"],
            ),
            StoryboardScene(
                sceneNumber=2,
                startSecond=3,
                endSecond=middle,
                narration=analysis.valueProposition,
                visualDescription="Medium shot, influencer showing app on phone, gesturing enthusiastically",
                screenContent=analysis.name,
                cameraDirection="Medium shot",
                emotion="enthusiastic",
                lens=_UGC_LENS,
                lighting="natural daylight, warm tone",
                performanceDirection="holds phone at arm length, broad hand gestures, leans forward",
                ugcKeywords=["smartphone selfie", "TikTok aesthetic", "trust builder"],
            ),
            StoryboardScene(
                sceneNumber=3,
                startSecond=middle,
                endSecond=duration,
                narration="Try it today!",
                visualDescription="Close-up with CTA overlay, genuine smile",
                cameraDirection="Close-up",
                emotion="confident",
                lens=_UGC_LENS,
                lighting="bright window/light from side",
                performanceDirection="warm confident smile, nods, points at camera",
                ugcKeywords=["real voice", "micro hand jitters", "natural front-camera look"],
            ),
        ]

    def generate_video_script(
        self,
        analysis: ProjectAnalysis,
        constitution: MarketingConstitution,
        platform: str,
        *,
        brief: Optional[str] = None,
        language: str = "en",
    ) -> VideoScript:
        spec = _PLATFORM_SCRIPT_SPECS.get(platform, _PLATFORM_SCRIPT_SPECS["instagram"])
        lang = _language_name(language)
        brief_section = f"\nCREATIVE BRIEF FROM THE USER:\n{brief}\n" if brief else ""
        prompt = f"""
You are an AI influencer who genuinely uses and loves {analysis.name}.

TASK: Tell a sincere, first-person story for {platform.upper()} {spec["format"]}. This is not an ad, it is your experience.

Product: {analysis.name}
What it does: {analysis.description}
Value proposition: {analysis.valueProposition}
Audience pain points: {", ".join(analysis.targetAudience.painPoints)}
Brand voice: {constitution.brandVoice}
{brief_section}
STRUCTURE: Hook (3s), Problem, Discovery, Demo with [SCREEN: description] notes, Transformation, CTA.
Maximum duration: {spec["max_duration"]} seconds. Tone: {spec["tone"]}.
Write the ENTIRE script in {lang}.

Respond ONLY with valid JSON:
{{
  "title": "Attention-grabbing title",
  "hook": "Opening 3-second hook",
  "body": "Main story body",
  "cta": "Genuine call to action",
  "fullScript": "Complete script with stage directions",
  "hashtags": ["5-8 relevant hashtags"],
  "estimatedDuration": {min(spec["max_duration"], 55)}
}}"""
        system = (
            "You are a world-class content strategist and storyteller. You present products as genuine "
            f"personal experience stories. Always respond in {lang}."
        )
        fallback = self.fallback_video_script(analysis, platform)
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_CREATIVE_MODEL, system=system))
        return coerce_model(VideoScript, parsed, fallback=fallback)

    @staticmethod
    def fallback_video_script(analysis: ProjectAnalysis, platform: str) -> VideoScript:
        name = analysis.name
        tag = re.sub(r"\s+", "", name)
        hook = f"Discover {name}!"
        body = analysis.valueProposition or analysis.description
        cta = "Try it now!"
        return VideoScript(
            title=f"{name} - {platform} Ad",
            hook=hook,
            body=body,
            cta=cta,
            fullScript=" ".join(part for part in (hook, body, cta) if part),
            hashtags=[f"#{tag}", "#marketing", "#ai"],
            estimatedDuration=10,
        )

    def generate_master_prompt(
        self,
        analysis: ProjectAnalysis,
        constitution: MarketingConstitution,
        *,
        influencer_persona: str,
        platform: str,
        previous_themes: list[str],
        language: str = "en",
    ) -> MasterPrompt:
        previous = ", ".join(previous_themes) if previous_themes else "None yet (first video)"
        prompt = f"""
Produce video and image prompts for the following product and influencer.

PROJECT:
- Name: {analysis.name}
- Description: {analysis.description}
- Target Audience: {analysis.targetAudience.model_dump_json()}
- USPs: {", ".join(analysis.keywords)}

INFLUENCER:
- Base Persona: {influencer_persona}

VIDEO SETTINGS:
- Platform: {platform}
- Mood: {constitution.visualGuidelines.mood}
- Language: {_language_name(language)}
- Duration: 10 seconds

PREVIOUS THEMES (NEVER REPEAT THESE):
{previous}

Respond ONLY with valid JSON:
{{
  "video_prompt": "English text-to-video prompt covering subject, action, scene, camera and lighting",
  "negative_prompt": "Comma-separated English negative prompt",
  "video_script": "10-second script, 30-40 words, Hook|Problem|CTA",
  "image_prompt": "English thumbnail prompt, 50-100 words",
  "audio_mood_tags": ["mood1", "mood2", "mood3"],
  "theme_tag": "short-english-theme-tag"
}}"""
        system = (
            "You write unique, visually striking and highly realistic prompts for AI video and image models. "
            "Prompts are always in English; scripts use the requested language."
        )
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_CREATIVE_MODEL, system=system))
        fallback = MasterPrompt(themeTag=f"fallback-{int(time.time())}")
        if not parsed:
            return fallback
        defaults = MasterPrompt()
        return MasterPrompt(
            videoPrompt=parsed.get("video_prompt") or defaults.videoPrompt,
            negativePrompt=parsed.get("negative_prompt") or defaults.negativePrompt,
            videoScript=parsed.get("video_script") or "",
            imagePrompt=parsed.get("image_prompt") or defaults.imagePrompt,
            audioMoodTags=parsed.get("audio_mood_tags") or defaults.audioMoodTags,
            themeTag=parsed.get("theme_tag") or f"theme-{int(time.time())}",
        )

    # Research and copy

    def analyze_competitors(self, analysis: ProjectAnalysis, constitution: MarketingConstitution) -> CompetitorAnalysis:
        competitors = analysis.competitors
        if not competitors:
            return CompetitorAnalysis(marketPosition="No competitor information found. Re-analyze the project.")

        listing = "\n".join(f"{index}. {name}" for index, name in enumerate(competitors, start=1))
        prompt = f"""
You are a world-class competitive intelligence analyst conducting DEEP RESEARCH.

=== OUR PROJECT ===
Name: {analysis.name}
Description: {analysis.description}
Value Proposition: {analysis.valueProposition}
Target Audience: {analysis.targetAudience.model_dump_json()}
Brand Voice: {constitution.brandVoice}
Keywords: {", ".join(analysis.keywords)}

=== COMPETITORS ===
{listing}

For EACH competitor provide a SWOT analysis (at least 3 strengths and 3 weaknesses), our specific
advantage over them, and their estimated positioning. Then give an overall market positioning summary,
the top 3 market opportunities for us, and concrete attack strategies.

Respond ONLY with valid JSON:
{{
  "competitors": [
    {{
      "name": "Name", "url": "url if known",
      "strengths": ["..."], "weaknesses": ["..."], "opportunities": ["..."], "threats": ["..."],
      "ourAdvantage": "Detailed advantage statement",
      "estimatedPosition": "Market leader / Strong challenger / Niche player / Emerging"
    }}
  ],
  "marketPosition": "3-5 sentence summary",
  "marketOpportunities": ["..."],
  "attackStrategies": ["..."]
}}"""
        fallback = CompetitorAnalysis(
            competitors=[
                CompetitorEntry(
                    name=name,
                    url=name,
                    strengths=["Market awareness"],
                    weaknesses=["Detailed analysis unavailable"],
                    ourAdvantage="We offer a more innovative approach",
                    estimatedPosition="Unknown",
                )
                for name in competitors
            ],
            marketPosition="Competitor analysis could not be completed. Please try again.",
        )
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_ANALYSIS_MODEL, max_tokens=4096))
        if parsed is not None:
            parsed.pop("generatedAt", None)
        return coerce_model(CompetitorAnalysis, parsed, fallback=fallback)

    def generate_ad_copy(
        self,
        analysis: ProjectAnalysis,
        constitution: MarketingConstitution,
        *,
        influencer_name: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> AdCopyResult:
        framework = constitution.messagingFramework
        ambassador = f"BRAND AMBASSADOR: {influencer_name}\n" if influencer_name else ""
        target = f"All variations target {platform}.\n" if platform else ""
        prompt = f"""
You are an expert digital advertising copywriter. Create 5 COMPLETELY DIFFERENT ad copy variations.

PRODUCT:
- Name: {analysis.name}
- Description: {analysis.description or analysis.valueProposition}
- Value Proposition: {analysis.valueProposition}
- Target Audience: {analysis.targetAudience.model_dump_json()}

BRAND MESSAGING FRAMEWORK:
- Hook: {framework.hook}
- Problem: {framework.problem}
- Solution: {framework.solution}
- CTA: {framework.cta}

{ambassador}{target}
Approaches: 1. emotion-driven 2. urgency-based 3. social proof 4. problem-solution 5. aspirational.

Respond ONLY with valid JSON:
{{
  "variations": [
    {{"id": 1, "approach": "Emotional", "headline": "max 40 chars", "body": "max 150 chars", "cta": "max 20 chars", "platform": "Facebook"}}
  ]
}}"""
        fallback = AdCopyResult(
            variations=[
                AdCopyVariation(
                    id=1,
                    approach="Emotional",
                    headline=f"Meet {analysis.name}",
                    body="The solution that makes your life easier is here. Try it now and feel the difference.",
                    cta="Get Started",
                    platform=platform or "Facebook",
                )
            ]
        )
        parsed = parse_json_object(self._complete(prompt, model=settings.LLM_CREATIVE_MODEL))
        if parsed is not None:
            parsed.pop("generatedAt", None)
        result = coerce_model(AdCopyResult, parsed, fallback=fallback)
        return result if result.variations else fallback

    # Images

    def enhance_image_prompt(
        self,
        user_prompt: str,
        *,
        brand_context: str,
        brand_colors: list[str],
        image_type: str,
        platform: str,
        visual_dna: Optional[str] = None,
        brand_persona: Optional[str] = None,
    ) -> str:
        colors = ", ".join(brand_colors) if brand_colors else "vibrant, modern"
        dna = f"\n- Visual DNA (incorporate these stylistic keywords): {visual_dna}" if visual_dna else ""
        persona = f"\n- Brand Persona (match this environment/mood): {brand_persona}" if brand_persona else ""
        system = f"""You are an expert prompt engineer specializing in AI image generation.
Generate a single, highly detailed image generation prompt in English based on the user's request.
The prompt must be:
- Under 600 characters
- English only, no special characters
- Professional marketing quality, photorealistic
- Include the brand color scheme: {colors}
- Optimized for {platform} {image_type}{dna}{persona}
- Output format: 'A high-end, photorealistic [SUBJECT] in a [ENVIRONMENT], [LIGHTING_STYLE], [TECHNICAL_SPECS]'
Brand context: {brand_context}
Return ONLY the prompt text, nothing else."""
        enhanced = self._complete(user_prompt, model=settings.LLM_CREATIVE_MODEL, system=system, max_tokens=400)
        if not enhanced or enhanced == STUB_OUTPUT:
            return _sanitize_image_prompt(user_prompt, 300)
        return _sanitize_image_prompt(enhanced, 600)
