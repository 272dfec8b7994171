"""
Phrasing pools for the conversation.

Each slot has question, follow-up and suggestion variants; the composer
picks among them with an injected random source.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field


class SlotTemplate(BaseModel):
    """Phrasing variants for one slot."""

    field: str
    questions: List[str] = Field(min_length=1)
    follow_up: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    suggested_options: List[str] = Field(default_factory=list)


SLOT_TEMPLATES: Dict[str, SlotTemplate] = {
    "destination": SlotTemplate(
        field="destination",
        questions=[
            "Where would you like to go?",
            "What destination do you have in mind?",
            "Where are you thinking of traveling to?",
            "Which city or country would you like to visit?",
        ],
        follow_up=[
            "Any specific city in mind?",
            "Which part of it interests you most?",
            "Do you have a particular city or region in mind?",
        ],
        suggestions=[
            "Popular destinations include Paris, Tokyo, Barcelona, New York, and Bali.",
            "Are you looking for beaches, mountains, cities, or cultural experiences?",
        ],
        suggested_options=["Paris", "Tokyo", "Barcelona", "New York", "Bali"],
    ),
    "dates": SlotTemplate(
        field="dates",
        questions=[
            "When would you like to travel?",
            "What dates are you considering for your trip?",
            "When are you planning to leave?",
            "When would you like the trip to start?",
        ],
        follow_up=[
            "Do you have specific dates in mind?",
            "Is there a particular month you prefer?",
        ],
        suggestions=[
            "You can say things like 'next week', 'in March', or a specific date like 25/09.",
            "Shoulder seasons are often quieter and more affordable than peak summer.",
        ],
        suggested_options=["Next week", "Next month", "In March"],
    ),
    "duration": SlotTemplate(
        field="duration",
        questions=[
            "How long would you like to stay?",
            "How many days are you planning for this trip?",
            "How long do you want your trip to be?",
        ],
        follow_up=[
            "Do you have a specific number of days in mind?",
            "Should that include travel days?",
        ],
        suggestions=[
            "A weekend getaway is typically 2-3 days.",
            "A standard city break is usually 4-5 days.",
            "For multiple cities, consider at least 7-10 days.",
        ],
        suggested_options=["3 days", "5 days", "1 week", "2 weeks"],
    ),
    "travelers": SlotTemplate(
        field="travelers",
        questions=[
            "Will you be traveling solo or with others?",
            "Who will be joining you on this trip?",
            "Is this a solo adventure or a group trip?",
            "How many people will be traveling?",
        ],
        follow_up=[
            "How many people in total?",
            "Is this a family trip, a romantic getaway, or a friends' adventure?",
        ],
        suggested_options=["Solo", "With my partner", "Family", "Friends"],
    ),
    "preferences": SlotTemplate(
        field="preferences",
        questions=[
            "Do you have any specific interests or activities in mind?",
            "What kind of experiences are you looking for?",
            "Any particular preferences for this trip?",
        ],
        follow_up=[
            "Are you interested in museums, outdoor activities, food tours, or nightlife?",
            "Do you need any work facilities like coworking spaces?",
            "Any dietary restrictions or accessibility needs?",
        ],
        suggestions=[
            "Popular activities include sightseeing, museums, local cuisine, shopping, and cultural experiences.",
            "Let me know if you need coworking spaces for remote work.",
        ],
        suggested_options=["Food & culture", "Outdoors", "Nightlife", "No preferences"],
    ),
}

GREETINGS = [
    "Hello! I'd be happy to help you plan your trip. Where would you like to go?",
    "Hi there! Ready to plan an amazing trip? Let's start with your destination. Where are you thinking of traveling?",
    "Welcome! I'm here to help create your perfect itinerary. What destination do you have in mind?",
    "Hello! Let's plan your next adventure. Where would you like to visit?",
]

MODIFICATION_PROMPTS = [
    "What would you like to change?",
    "Which detail should I update?",
    "Tell me what you'd like to modify.",
]

GENERATING_MESSAGES = [
    "Wonderful! I'll start creating your {duration}-day itinerary for {destination}...",
    "Perfect! Let me craft your personalized {destination} itinerary...",
    "Great! Creating your {duration}-day adventure in {destination} now...",
]

FEEDBACK_PROMPTS = [
    "Here's your itinerary! Would you like to make any changes?",
    "Your itinerary is ready! Let me know if you'd like to modify anything.",
    "Here's your trip plan! Is there anything you'd like to change or add?",
]

# Acknowledgement prefixes used after a slot is filled
ACKNOWLEDGEMENTS: Dict[str, List[str]] = {
    "destination": ["{destination} sounds amazing!", "Great choice, {destination}!"],
    "dates": ["Perfect timing!", "Got it!"],
    "duration": ["Sounds good!", "Great!"],
    "travelers": ["Thanks!", "Got it!"],
    "preferences": ["Noted!", "Great!"],
}

MODIFICATION_TARGET_OPTIONS: Tuple[str, ...] = (
    "Destination",
    "Dates",
    "Duration",
    "Travelers",
    "Preferences",
)

CLOSING_MESSAGE = (
    "You're welcome! Have an amazing trip! Feel free to ask if you need any more help."
)
STILL_GENERATING_MESSAGE = (
    "I'm still putting your itinerary together. It'll be ready in a moment!"
)
ASK_FOR_FEEDBACK_MESSAGE = "Is there anything you'd like to change about the itinerary?"
MODIFY_ITINERARY_MESSAGE = (
    "I'll help you modify the itinerary. Which detail would you like to change: "
    "destination, dates, duration, travelers, or preferences?"
)
UNCLEAR_CONFIRMATION_MESSAGE = (
    "Should I proceed with creating your itinerary, or would you like to change something?"
)
GENERATION_FAILED_MESSAGE = (
    "Sorry, I couldn't finish your itinerary ({error}). "
    "Should I try again, or would you like to change something?"
)
