"""
Long-form text → candidate posts, via DeepSeek's OpenAI-compatible API.

Single request per message, no retry.
"""

from openai import APIConnectionError, AsyncOpenAI, OpenAIError

from postbot.errors import TextTransformError
from postbot.logging_config import bot_logger as logger

FALLBACK_TEXT = "Sorry, I couldn't generate posts."

MAX_TOKENS = 800
TEMPERATURE = 0.7

POST_GENERATION_PROMPT = """You are an expert social media content creator. Your task is to analyze the provided long-form text and create 3-4 engaging, suitable posts for X (Twitter).

Guidelines for creating posts:
1. Each post must be concise (under 280 characters)
2. Extract key ideas, insights, or highlights from the text
3. Make each post engaging, clear, and valuable
4. Use a conversational yet professional tone
5. Each post should stand alone but complement the others
6. Focus on different angles or aspects of the content
7. Use emojis sparingly and appropriately
8. Include relevant hashtags when appropriate (2-3 max per post)

Format your response as follows:
Post 1: [first post text]
Post 2: [second post text]
Post 3: [third post text]
Post 4: [fourth post text - optional]

If you can only create 3 high-quality posts, that's acceptable. Always prioritize quality over quantity."""


class TextTransformer:

    def __init__(self, client: AsyncOpenAI, model: str = "deepseek-chat"):
        self.client = client
        self.model = model

    @classmethod
    def from_credentials(cls, api_key: str, base_url: str, model: str) -> "TextTransformer":
        return cls(AsyncOpenAI(api_key=api_key, base_url=base_url), model=model)

    async def transform(self, text: str) -> str:
        """
        Generate candidate posts from free text.

        Returns FALLBACK_TEXT when the completion has no content.

        Raises:
            TextTransformError: the API call failed; `transient` is set
                when the API could not be reached (timeouts included)
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": POST_GENERATION_PROMPT},
                    {"role": "user", "content": text},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except APIConnectionError as e:
            logger.error(f"Text generation API unreachable: {e}")
            raise TextTransformError("Text generation API unreachable", transient=True) from e
        except OpenAIError as e:
            logger.error(f"Text generation failed: {e}")
            raise TextTransformError("Text generation failed") from e

        if not response.choices:
            return FALLBACK_TEXT

        content = response.choices[0].message.content
        if not content or not content.strip():
            return FALLBACK_TEXT
        return content.strip()

    async def close(self):
        await self.client.close()
