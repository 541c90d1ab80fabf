# listings/wizard.py
"""
Listing creation wizard.

The wizard is a small state machine over an ordered list of steps. Which
steps exist depends on the category picked in the first step; every step
has a validator returning an error code (or None), and the host can only
move forward past a step that validates. The draft itself is the
persisted state: `Listing.current_step` is the index into the step list.
"""

from .models import SUBCATEGORIES

INITIAL_STEPS = ['category']

STAY_STEPS = [
    'category', 'property-type', 'location', 'basics-stay', 'amenities',
    'photos', 'title', 'description', 'pricing', 'availability', 'rules', 'review',
]

VEHICLE_STEPS = [
    'category', 'vehicle-type', 'location', 'basics-vehicle', 'vehicle-features',
    'photos', 'title', 'description', 'pricing', 'availability', 'rules', 'review',
]

PHASE_2_STEPS = {'photos', 'title', 'description'}
PHASE_3_STEPS = {'pricing', 'availability', 'rules', 'review'}

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 2000


def steps_for(listing):
    if listing.category == 'stay':
        return STAY_STEPS
    if listing.category == 'vehicle':
        return VEHICLE_STEPS
    return INITIAL_STEPS


def phase_of(step_id):
    if step_id in PHASE_2_STEPS:
        return 2
    if step_id in PHASE_3_STEPS:
        return 3
    return 1


# --- Step validators ---

def _validate_category(listing):
    if listing.category not in SUBCATEGORIES:
        return 'selectCategory'


def _validate_type(listing):
    if not listing.subcategory or listing.subcategory not in SUBCATEGORIES.get(listing.category, []):
        return 'selectType'


def _validate_location(listing):
    if not listing.city or not listing.state:
        return 'selectCity'
    if not listing.street:
        return 'enterStreet'
    if not listing.coordinates_in_range:
        return 'placeMarker'


def _validate_basics_stay(listing):
    if listing.bedrooms < 1:
        return 'atLeastOneBedroom'
    if listing.bathrooms < 1:
        return 'atLeastOneBathroom'


def _validate_basics_vehicle(listing):
    if not listing.make:
        return 'enterMake'
    if not listing.model:
        return 'enterModel'
    if not listing.transmission:
        return 'selectTransmission'
    if not listing.fuel_type:
        return 'selectFuelType'


def _validate_photos(listing):
    if not listing.images:
        return 'atLeastOnePhoto'


def _validate_title(listing):
    # Emptiness ignores whitespace, length limits count it
    title = listing.title or ''
    if not title.strip():
        return 'enterTitle'
    if len(title) < TITLE_MIN_LENGTH:
        return 'titleTooShort'
    if len(title) > TITLE_MAX_LENGTH:
        return 'titleTooLong'


def _validate_description(listing):
    description = listing.description or ''
    if not description.strip():
        return 'enterDescription'
    if len(description) < DESCRIPTION_MIN_LENGTH:
        return 'descriptionTooShort'
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return 'descriptionTooLong'


def _validate_pricing(listing):
    if listing.base_price is None or listing.base_price <= 0:
        return 'enterPrice'


VALIDATORS = {
    'category': _validate_category,
    'property-type': _validate_type,
    'vehicle-type': _validate_type,
    'location': _validate_location,
    'basics-stay': _validate_basics_stay,
    'basics-vehicle': _validate_basics_vehicle,
    'photos': _validate_photos,
    'title': _validate_title,
    'description': _validate_description,
    'pricing': _validate_pricing,
}


def validate_step(listing, step_id):
    """Error code for `step_id`, or None when the step is complete (or has no checks)."""
    validator = VALIDATORS.get(step_id)
    if validator is None:
        return None
    return validator(listing)


def first_invalid_step(listing):
    """(step_id, code) of the first step that fails, or None."""
    for step_id in steps_for(listing):
        code = validate_step(listing, step_id)
        if code:
            return step_id, code
    return None


class WizardNavigator:
    """Navigation over a draft's step list. Call `save()` to persist the index."""

    def __init__(self, listing):
        self.listing = listing

    @property
    def steps(self):
        return steps_for(self.listing)

    @property
    def index(self):
        return max(0, min(self.listing.current_step, len(self.steps) - 1))

    @property
    def current_step(self):
        return self.steps[self.index]

    @property
    def progress(self):
        return (self.index + 1) / len(self.steps) * 100

    @property
    def is_last_step(self):
        return self.index == len(self.steps) - 1

    @property
    def can_go_back(self):
        return self.index > 0

    @property
    def can_go_next(self):
        return not self.is_last_step and validate_step(self.listing, self.current_step) is None

    def go_next(self):
        """Advance one step. Returns the blocking error code, or None on success."""
        code = validate_step(self.listing, self.current_step)
        if code:
            return code
        if not self.is_last_step:
            self.listing.current_step = self.index + 1
        return None

    def go_back(self):
        if self.can_go_back:
            self.listing.current_step = self.index - 1

    def go_to(self, index):
        self.listing.current_step = max(0, min(int(index), len(self.steps) - 1))

    def save(self):
        self.listing.save(update_fields=['current_step', 'updated_at'])

    def state(self):
        return {
            'steps': [
                {
                    'id': step_id,
                    'phase': phase_of(step_id),
                    'error': validate_step(self.listing, step_id),
                }
                for step_id in self.steps
            ],
            'current_index': self.index,
            'current_step': self.current_step,
            'phase': phase_of(self.current_step),
            'progress': round(self.progress, 2),
            'can_go_next': self.can_go_next,
            'can_go_back': self.can_go_back,
            'is_last_step': self.is_last_step,
            'has_draft': self.listing.has_draft_content,
        }
