import django_filters
from apps.events.models import Event, Registration
from django.db.models import Q


class EventFilter(django_filters.FilterSet):
    '''
    Browse filters for the event catalog.
    '''
    event_type = django_filters.ChoiceFilter(choices=Event.EventType.choices)
    eligibility = django_filters.ChoiceFilter(choices=Event.Eligibility.choices, method="filter_eligibility")
    status = django_filters.ChoiceFilter(choices=Event.EventStatus.choices)
    organizer = django_filters.UUIDFilter(field_name="organizer__id")
    name = django_filters.CharFilter(lookup_expr="icontains")
    search = django_filters.CharFilter(method='filter_search')
    tags = django_filters.CharFilter(method='filter_tags')
    starts_after = django_filters.DateTimeFilter(field_name="start_date", lookup_expr="gte")
    starts_before = django_filters.DateTimeFilter(field_name="start_date", lookup_expr="lte")

    def filter_eligibility(self, queryset, name, value):
        """Events open to everyone also match a specific eligibility"""
        return queryset.filter(eligibility__in=[value, Event.Eligibility.ALL])

    def filter_search(self, queryset, name, value):
        """Name, description, organizer name or tags"""
        return queryset.filter(
            Q(name__icontains=value) |
            Q(description__icontains=value) |
            Q(organizer__name__icontains=value) |
            Q(tags__icontains=value)
        ).distinct()

    def filter_tags(self, queryset, name, value):
        """Comma separated tags, an event matches if it carries any of them"""
        tags = [tag.strip() for tag in value.split(',') if tag.strip()]
        if not tags:
            return queryset
        query = Q()
        for tag in tags:
            query |= Q(tags__icontains=f'"{tag}"')
        return queryset.filter(query)

    class Meta:
        model = Event
        fields = [
            "event_type", "eligibility", "status", "organizer", "name",
            "search", "tags", "starts_after", "starts_before",
        ]


class RegistrationFilter(django_filters.FilterSet):
    '''
    Organizer view of an event's registrations.
    '''
    participant_type = django_filters.CharFilter(lookup_expr="iexact")
    attendance_marked = django_filters.BooleanFilter()
    status = django_filters.ChoiceFilter(choices=Registration.RegistrationStatus.choices)
    search = django_filters.CharFilter(method='filter_search')

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(participant__first_name__icontains=value) |
            Q(participant__last_name__icontains=value) |
            Q(participant__user__email__icontains=value) |
            Q(ticket_id__icontains=value)
        )

    class Meta:
        model = Registration
        fields = ["participant_type", "attendance_marked", "status", "search"]
