from typing import Dict, Iterable, List, Sequence

from app.models import Event

# Interest categories and the words that mark an event as belonging to one.
# Order matters: get_similarity_reason breaks ties in favour of the earlier category.
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Sports": ["basketball", "volleyball", "sports", "tournament", "athletic", "fitness", "game"],
    "Environment": ["tree", "planting", "clean", "environment", "eco", "green", "nature"],
    "Education": ["workshop", "seminar", "training", "education", "learning", "school", "academic"],
    "Arts & Culture": ["art", "dance", "music", "cultural", "creative", "exhibition", "performance"],
    "Community Service": ["community", "service", "volunteer", "charity", "donation", "help"],
    "Technology": ["tech", "coding", "digital", "computer", "programming", "software"],
}

def _event_text(event: Event) -> str:
    return f"{event.title or ''} {event.description or ''}".lower()

def _add_event_keywords(keywords: Dict[str, int], event: Event) -> None:
    text = _event_text(event)
    for category, category_keywords in CATEGORY_KEYWORDS.items():
        for keyword in category_keywords:
            if keyword in text:
                keywords[category] = keywords.get(category, 0) + 1
                keywords[keyword] = keywords.get(keyword, 0) + 1

    if event.location:
        location = event.location.lower()
        keywords[location] = keywords.get(location, 0) + 1

def extract_keywords(events: Iterable[Event]) -> Dict[str, int]:
    """
    Build an interest-weight map from the events a user took part in.

    Keys are category names, matched keywords and lower-cased locations;
    values count how often each showed up.
    """
    keywords: Dict[str, int] = {}
    for event in events:
        _add_event_keywords(keywords, event)
    return keywords

def extract_keywords_from_event(event: Event) -> Dict[str, int]:
    keywords: Dict[str, int] = {}
    _add_event_keywords(keywords, event)
    return keywords

def calculate_similarity(user_interests: Dict[str, int], event_keywords: Dict[str, int]) -> int:
    """Score an event: sum of keyword count times interest weight over shared keys."""
    score = 0
    for keyword, count in event_keywords.items():
        if user_interests.get(keyword):
            score += count * user_interests[keyword]
    return score

def get_similarity_reason(event: Event, user_interests: Dict[str, int]) -> str:
    """
    Human-readable reason shown next to a recommended event.

    Names the category with the highest overlap, i.e. the user's weight for
    the category times the number of its keywords found in the event.
    Ties go to the category listed first in CATEGORY_KEYWORDS.
    """
    text = _event_text(event)
    best_category, best_overlap = None, 0
    for category, category_keywords in CATEGORY_KEYWORDS.items():
        weight = user_interests.get(category, 0)
        if not weight:
            continue
        overlap = weight * sum(1 for keyword in category_keywords if keyword in text)
        if overlap > best_overlap:
            best_category, best_overlap = category, overlap

    if best_category:
        return f"Similar to your {best_category.lower()} interests"

    if event.location and user_interests.get(event.location.lower()):
        return "At a location you've visited before"

    return "Based on your interests"

def rank_events_by_similarity(events: Sequence[Event], user_interests: Dict[str, int]) -> List[Event]:
    """Order events by similarity score, best first. Ties keep their input order."""
    return sorted(
        events,
        key=lambda event: calculate_similarity(user_interests, extract_keywords_from_event(event)),
        reverse=True
    )
