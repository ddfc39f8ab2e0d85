"""
Create the OpenAI assistant used by the `assistant` classifier backend.

The assistant gets the profile classification instructions plus the profile
reports from PROFILES_DIR (built-in summaries when no reports are found).

Usage:
    python3 scripts/create_assistant.py [--model gpt-4o] [--name "Financial Planning Expert"]

Then add the printed id to .env as OPENAI_ASSISTANT_ID.
"""

import argparse
import sys
from pathlib import Path

from openai import OpenAI

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from finprofile.classification import ProfileLibrary
from finprofile.config import load_settings
from finprofile.prompts import create_system_prompt


def create_assistant(client: OpenAI, name: str, model: str, profiles_dir=None) -> str:
    """Create the assistant and return its id."""
    instructions = create_system_prompt(ProfileLibrary.load(profiles_dir).render())
    assistant = client.beta.assistants.create(
        name=name,
        instructions=instructions,
        model=model,
    )
    return assistant.id


def main():
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Create the financial profile assistant")
    parser.add_argument("--name", default="Financial Planning Expert")
    parser.add_argument("--model", default=settings.openai_model)
    args = parser.parse_args()

    if not settings.openai_api_key:
        print("Error: OPENAI_API_KEY is missing. Set it in .env or the environment.")
        sys.exit(1)

    print("Creating assistant...")
    assistant_id = create_assistant(
        OpenAI(api_key=settings.openai_api_key),
        name=args.name,
        model=args.model,
        profiles_dir=settings.profiles_dir,
    )

    print(f"""
Assistant created: {assistant_id}

Next steps:
  1. Add to your .env file: OPENAI_ASSISTANT_ID={assistant_id}
  2. Set CLASSIFIER_BACKEND=assistant
  3. Restart the web server
""")


if __name__ == "__main__":
    main()
