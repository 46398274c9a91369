"""Prompt templates for the semantic service.

Provides the cut proposal prompt (find excerpts about the channel's topics in
a caption document) and the SEO metadata prompt for a single cut.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CutPromptBuilder:
    """Builder for cut proposal prompts.

    Attributes:
        caption_format: Name of the caption format shown to the model
        tolerance_minutes: How far an excerpt may drift from the target length
    """

    caption_format: str = "WEBVTT"
    tolerance_minutes: str = "1-2"

    def build_system_prompt(self, topics: str, excerpts: int, stretch_minutes: int) -> str:
        """Build the system prompt.

        Args:
            topics: Topics the excerpts must be about
            excerpts: Minimum number of excerpts wanted
            stretch_minutes: Target length of each excerpt in minutes

        Returns:
            System prompt string
        """
        return f"""You are a professional video editor specialized in analyzing video subtitles and identifying compelling segments about the topics "{topics}".
Your task is to locate multiple excerpts (at least {excerpts}, if possible) that contain relevant discussions about these topics.

While each excerpt should target around {stretch_minutes} minute(s) in length, you should prioritize natural cutting points where conversations
or ideas reach logical conclusions. This means your cuts can be {self.tolerance_minutes} minutes longer or shorter than the target time
if that produces a better quality clip with complete thoughts and discussions.

Focus on segments that are self-contained, meaningful, and engaging. Cut at natural conversational breaks, not mid-sentence.

Return only a JSON object in the format: {{"cuts": [{{"title": "Descriptive title of the cut", "begin": start time in seconds (integer), "end": end time in seconds (integer)}}]}}"""

    def build_user_prompt(self, caption_document: str, topics: str, stretch_minutes: int) -> str:
        """Build the user prompt carrying the caption document."""
        return (
            f"Here is the subtitle file in {self.caption_format} format:\n\n"
            f"{caption_document}\n\n"
            f'Identify multiple interesting segments related to the topics "{topics}". '
            f"Target approximately {stretch_minutes} minute(s) per segment, but prioritize "
            "natural cut points for complete thoughts. "
            "Return only the JSON object with the identified cuts."
        )


@dataclass
class MetadataPromptBuilder:
    """Builder for SEO metadata prompts.

    Attributes:
        platforms: Platforms the metadata is written for
        max_description_length: Description limit in characters
        max_tags: Maximum number of tags
        hashtag_count: Number of hashtags requested
    """

    platforms: str = "YouTube, TikTok, and Instagram"
    max_description_length: int = 250
    max_tags: int = 10
    hashtag_count: int = 5

    def build_system_prompt(self, topics: str) -> str:
        return f"""You are an expert in SEO for {self.platforms} videos.
Your task is to create optimized metadata for a video clip about "{topics}".
Generate an attractive title, an engaging description limited to {self.max_description_length} characters, up to {self.max_tags} relevant tags, and {self.hashtag_count} popular hashtags.

IMPORTANT: Keep the language of your output THE SAME as the language used in the subtitle excerpt.
DO NOT translate to English - maintain the original language of the subtitles."""

    def build_user_prompt(self, transcript: str, title: str) -> str:
        return f"""Based on this subtitle excerpt:
"{transcript}"

And with this original title: "{title}"

Create SEO-optimized metadata in JSON format with the following fields:
1. title: An attractive SEO-optimized title (keep in the SAME LANGUAGE as the subtitle)
2. description: An engaging description up to {self.max_description_length} characters (keep in the SAME LANGUAGE as the subtitle)
3. tags: List of up to {self.max_tags} relevant tags (without the # symbol, keep in the SAME LANGUAGE as the subtitle)
4. hashtags: List of {self.hashtag_count} popular hashtags (including the # symbol, keep in the SAME LANGUAGE as the subtitle)"""


DEFAULT_CUT_PROMPT = CutPromptBuilder()
DEFAULT_METADATA_PROMPT = MetadataPromptBuilder()
