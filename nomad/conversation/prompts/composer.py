"""
Prompt composer for the conversation.

Builds the next question, the confirmation summary, and reason-specific
clarification lines from the data collected so far. Variant selection goes
through an injected `random.Random`, so tests can pin the phrasing.
"""

import random
from typing import List, Optional

from nomad.conversation.prompts.templates import (
    ACKNOWLEDGEMENTS,
    FEEDBACK_PROMPTS,
    GENERATING_MESSAGES,
    GREETINGS,
    MODIFICATION_PROMPTS,
    SLOT_TEMPLATES,
    UNCLEAR_CONFIRMATION_MESSAGE,
)
from nomad.conversation.schemas import CollectedData, SlotAnalysis


class PromptComposer:
    """
    Composes outgoing conversation text.

    Args:
        rng: Random source for picking phrasing variants
        max_destinations: Destination cap quoted in clarifications
        max_duration: Longest trip (days) quoted in clarifications
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        max_destinations: int = 5,
        max_duration: int = 30,
    ):
        self.rng = rng or random.Random()
        self.max_destinations = max_destinations
        self.max_duration = max_duration

    def _pick(self, options: List[str]) -> str:
        return self.rng.choice(options)

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    def question(self, slot: str, data: Optional[CollectedData] = None) -> str:
        """Ask for `slot`, personalized with what we already know."""
        template = SLOT_TEMPLATES.get(slot)
        if template is None:
            return f"Could you tell me more about the {slot} for your trip?"

        question = self._pick(template.questions)
        if data is not None:
            question = self._add_context(question, slot, data)
        return question

    def _add_context(self, question: str, slot: str, data: CollectedData) -> str:
        if slot == "dates" and data.destination:
            return question.replace("travel?", f"visit {data.destination}?")
        if slot == "duration" and data.destination:
            return question.replace("stay?", f"stay in {data.destination}?")
        if slot == "travelers" and data.destination and data.duration:
            return f"A {data.duration}-day trip to {data.destination}. {question}"
        return question

    def follow_up(self, slot: str) -> str:
        template = SLOT_TEMPLATES.get(slot)
        if template is None or not template.follow_up:
            return "Could you be more specific?"
        return self._pick(template.follow_up)

    def uncertainty_help(self, slot: str) -> str:
        template = SLOT_TEMPLATES.get(slot)
        if template is None or not template.suggestions:
            return "No problem! Take your time to think about it, and let me know when you're ready."
        return f"No worries! {template.suggestions[0]} What sounds good to you?"

    def suggested_options(self, slot: str) -> List[str]:
        template = SLOT_TEMPLATES.get(slot)
        return list(template.suggested_options) if template else []

    def acknowledgement(self, slot: str, data: CollectedData) -> str:
        options = ACKNOWLEDGEMENTS.get(slot)
        if not options:
            return ""
        return self._pick(options).format(destination=data.destination or "That")

    # -------------------------------------------------------------------------
    # Clarifications
    # -------------------------------------------------------------------------

    def clarification(self, analysis: SlotAnalysis, text: str) -> str:
        """
        Reason-specific clarification for an analysis that needs one.

        Args:
            analysis: The slot analysis that asked for clarification
            text: The user's original message

        Returns:
            Conversational clarification text
        """
        slot = analysis.field
        reason = analysis.reason

        if reason == "uncertain":
            return self.uncertainty_help(slot)

        if reason == "too_vague":
            region = analysis.value[0] if analysis.value else text.strip()
            return f"{region} is a great region! {self.follow_up('destination')}"

        if reason == "too_many_destinations":
            return (
                f"That's a lot of places! I can handle up to {self.max_destinations} "
                f"destinations. Which are your top priorities?"
            )

        if reason == "no_destination_provided":
            return self.question("destination")

        if reason in ("not_a_destination", "too_short"):
            return "I didn't quite catch that. Which city or country would you like to visit?"

        if reason == "season_too_vague":
            season = (analysis.value or {}).get("season", "That").capitalize()
            return f"{season} is a great time to travel! Could you be more specific about which month?"

        if reason == "unclear_date":
            return (
                "Could you clarify when you'd like to travel? You can say things like "
                "'next week', 'in March', or a specific date."
            )

        if reason == "too_long":
            return (
                f"{analysis.value} days is quite a long trip! I can plan trips up to "
                f"{self.max_duration} days. Would you like to plan for {self.max_duration} "
                f"days, or a shorter duration?"
            )

        if reason == "approximate_duration":
            return f'"{text.strip()}" sounds good! Could you give me a specific number of days?'

        if reason == "too_short":
            return "A trip needs at least one day. How many days would you like?"

        if reason == "too_short_for_destinations":
            return (
                f"With {analysis.value} destinations you'll need at least {analysis.value} "
                f"days. How many days would you like?"
            )

        if reason == "unclear_duration":
            return "How many days would you like to spend on this trip?"

        if reason == "unclear_confirmation":
            return UNCLEAR_CONFIRMATION_MESSAGE

        return self.question(slot)

    # -------------------------------------------------------------------------
    # Fixed moments
    # -------------------------------------------------------------------------

    def greeting(self) -> str:
        return self._pick(GREETINGS)

    def modification_prompt(self) -> str:
        return self._pick(MODIFICATION_PROMPTS)

    def feedback_prompt(self) -> str:
        return self._pick(FEEDBACK_PROMPTS)

    def generating_message(self, data: CollectedData) -> str:
        return self._pick(GENERATING_MESSAGES).format(
            duration=data.duration, destination=data.destination
        )

    def confirmation(self, data: CollectedData) -> str:
        """Summary of everything collected, asking for a yes/no."""
        parts = ["Perfect! Let me confirm the details:"]

        if data.destination:
            parts.append(f"• Destination: {data.destination}")
        if data.start_date:
            when = data.start_date.strftime("%A, %d %B %Y")
            if data.date_phrase and data.date_phrase.lower() not in when.lower():
                when = f"{when} ({data.date_phrase})"
            parts.append(f"• Starting: {when}")
        if data.duration:
            parts.append(f"• Duration: {data.duration} days")
        if data.days_per_city and data.destinations:
            split = ", ".join(
                f"{city} {days}d" for city, days in zip(data.destinations, data.days_per_city)
            )
            parts.append(f"• Split: {split}")
        if data.travelers:
            travelers = data.travelers
            if travelers.type == "solo":
                parts.append("• Travelers: Solo traveler")
            elif travelers.count:
                parts.append(f"• Travelers: {travelers.count} travelers ({travelers.type})")
            else:
                parts.append(f"• Travelers: {travelers.type.capitalize()}")
        if data.preferences:
            if data.preferences.needs_coworking:
                parts.append("• Including coworking spaces")
            if data.preferences.activities:
                parts.append(f"• Interests: {', '.join(data.preferences.activities)}")
            if data.preferences.budget:
                parts.append(f"• Budget: {data.preferences.budget}")
            if data.preferences.dietary:
                parts.append(f"• Dietary: {', '.join(data.preferences.dietary)}")

        parts.append("\nIs this correct? (Yes to proceed, or tell me what to change)")
        return "\n".join(parts)
