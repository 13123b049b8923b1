"""Override payloads for the RunComfy deployments."""

from typing import Any, Optional

from ..errors import ValidationError

DEFAULT_WORKFLOW_TYPE = "wan2.2_t2v"
MAX_STITCH_DURATION = 60
DEFAULT_STYLE_PROMPT = "cinematic, dramatic lighting, professional color grading"


def video_generate_overrides(
    prompt: Optional[str],
    workflow_type: Optional[str] = None,
    overrides: Optional[dict] = None,
) -> dict:
    """Build Wan 2.2 text/image-to-video overrides.

    Raises:
        ValidationError: If the prompt is missing.
    """
    if not prompt or not prompt.strip():
        raise ValidationError("Missing required parameters: prompt")
    return {
        **(overrides or {}),
        "prompt": prompt,
        "workflow_type": workflow_type or DEFAULT_WORKFLOW_TYPE,
    }


def stitch_overrides(
    video_clips: Optional[list],
    output_duration: Optional[float] = None,
    transition_style: Optional[str] = None,
    quality: Optional[str] = None,
    fps: Optional[int] = None,
    resolution: Optional[str] = None,
    audio_enabled: bool = False,
    background_music: Optional[str] = None,
    color_grading: Optional[str] = None,
) -> dict:
    """Build Framepack stitching overrides. Output is capped at 60 seconds.

    Raises:
        ValidationError: If video_clips is missing or empty.
    """
    if not video_clips or not isinstance(video_clips, list):
        raise ValidationError("Video clips array is required and cannot be empty")
    return {
        "video_clips": video_clips,
        "output_duration": min(output_duration or MAX_STITCH_DURATION, MAX_STITCH_DURATION),
        "transition_style": transition_style or "smooth",
        "quality": quality or "high",
        "fps": fps or 24,
        "resolution": resolution or "1920x1080",
        "audio_enabled": bool(audio_enabled),
        "background_music": background_music,
        "effects": {
            "color_grading": color_grading or "cinematic",
            "motion_smoothing": True,
            "scene_transitions": True,
            "auto_crop": True,
        },
        "stitching_options": {
            "enable_smart_cutting": True,
            "scene_detection": True,
            "auto_timing": True,
            "crossfade_duration": 0.5,
        },
    }


def style_transfer_overrides(
    video_url: Optional[str],
    reference_style: Optional[str] = None,
    style_prompt: Optional[str] = None,
    overrides: Optional[dict] = None,
) -> dict:
    """Build style transfer overrides.

    Boolean preservation flags default to on and are only disabled by an
    explicit False.

    Raises:
        ValidationError: If video_url is missing.
    """
    if not video_url:
        raise ValidationError("Video URL is required for style transfer")
    options: dict[str, Any] = overrides or {}
    return {
        "input_video": video_url,
        "reference_style": reference_style,
        "style_prompt": style_prompt or DEFAULT_STYLE_PROMPT,
        "style_intensity": options.get("style_intensity") or 0.8,
        "preserve_motion": options.get("preserve_motion") is not False,
        "color_palette": options.get("color_palette") or "enhanced",
        "lighting_style": options.get("lighting_style") or "dramatic",
        "texture_detail": options.get("texture_detail") or "high",
        "output_resolution": options.get("output_resolution") or "1920x1080",
        "quality": options.get("quality") or "high",
        "temporal_consistency": options.get("temporal_consistency") is not False,
        "edge_preservation": options.get("edge_preservation") is not False,
        "skin_tone_preservation": options.get("skin_tone_preservation") is not False,
        "artistic_effects": options.get("artistic_effects") or {},
        "color_grading": options.get("color_grading") or "cinematic",
    }
