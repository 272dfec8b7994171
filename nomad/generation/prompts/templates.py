"""
Prompt templates for the generation pipeline.

System prompts are static; the user prompts are filled in by the builders
with the trip parameters.
"""

ACTIVITY_CATEGORIES = ("Attraction", "Food", "Leisure", "Work", "Travel", "Accommodation")

METADATA_SYSTEM_PROMPT = """You are a travel planner. You produce trip-level metadata for a multi-destination itinerary.

Return ONLY a valid JSON object with this structure:
{
  "title": "Short, catchy trip title",
  "destinations": ["City", "..."],
  "days_per_city": [3, 2],
  "estimated_cost": {"total": 1250, "currency": "USD"},
  "quick_tips": ["Practical tip", "..."]
}

Rules:
- "destinations" must list exactly the destinations you were given, in the same order.
- "days_per_city" must have one entry per destination, each at least 1, summing to the trip duration.
- Give at most 4 quick tips.
"""

METADATA_USER_TEMPLATE = """Plan the trip metadata.

Destinations (in order): {destinations}
Trip duration: {duration} days
Start date: {start_date}
{details}"""

CITY_SYSTEM_PROMPT = "Generate detailed day-by-day itinerary. Return only valid JSON."

CITY_USER_TEMPLATE = """Create EXACTLY {days} days itinerary for {city}.
Start date: {start_date}
Start day number: {start_day}

IMPORTANT: You MUST generate EXACTLY {days} days. Each day must have a complete set of activities.

Generate {days} days with 5-6 activities per day including:
- Morning activity (9:00-10:00)
- Mid-morning activity (11:00)
- Lunch (12:30-13:00)
- Afternoon activities (14:00, 16:00)
- Evening/dinner (19:00)

Include specific venue names for each activity.
{details}
Return a JSON object with EXACTLY {days} days numbered from {start_day} to {end_day}:
{{
  "city": "{city}",
  "days": [
    {{
      "day": {start_day},
      "date": "{start_date}",
      "title": "Day {start_day} - {city}",
      "activities": [
        {{
          "time": "09:00",
          "description": "Visit a landmark",
          "venue_name": "Landmark name",
          "category": "Attraction",
          "tips": "Book tickets online to skip lines"
        }}
      ]
    }}
  ]
}}

Categories: {categories}"""
