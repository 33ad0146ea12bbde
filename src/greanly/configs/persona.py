from pydantic import BaseModel, Field

DEFAULT_WELCOME_MESSAGE = """Hi! I'm Greanly. Before I help you, I need to understand your business a little better.

Could you tell me:

1) What industry your business is in?
2) What materials you currently use?
3) Where your business is located?
4) What sustainability goal you want to focus on first?

Examples of goals include reducing waste, sourcing better materials, improving packaging, lowering your carbon footprint, or finding sustainable suppliers.

Once I have this, I'll create a personalised sustainability plan for you. 🌱
"""  # noqa: E501


class PersonaConfig(BaseModel):
    """Assistant persona shown to users and rendered into system prompts."""

    name: str = Field(default="Greanly", description="Assistant display name")
    owner: str = Field(
        default="Naavya & Sidhant", description="Who built the assistant"
    )
    welcome_message: str = Field(
        default=DEFAULT_WELCOME_MESSAGE,
        description="Onboarding message shown before the first user turn",
    )
    timezone: str = Field(
        default="UTC", description="IANA timezone used for the date/time prompt"
    )
