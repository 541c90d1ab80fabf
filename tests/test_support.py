from datetime import date, timedelta
from unittest import mock

import pytest
from django.db import IntegrityError
from django.utils import timezone

from support.models import Ticket, next_ticket_number

pytestmark = pytest.mark.django_db

TICKETS_URL = '/api/tickets/'


def open_ticket(client, **overrides):
    data = {
        'subject': 'Cannot upload photos',
        'description': 'The upload button does nothing on my listing.',
        'category': 'technical',
    }
    data.update(overrides)
    return client.post(TICKETS_URL, data, format='json')


def test_ticket_number_sequence(guest):
    first = Ticket.objects.create(user=guest, subject='A', description='First')
    second = Ticket.objects.create(user=guest, subject='B', description='Second')
    prefix = f"TKT-{timezone.localdate():%Y%m}-"
    assert first.ticket_number == f"{prefix}00001"
    assert second.ticket_number == f"{prefix}00002"


def test_ticket_number_resets_each_month(guest):
    Ticket.objects.create(user=guest, subject='A', description='First')
    next_month = (timezone.localdate().replace(day=1) + timedelta(days=32)).replace(day=1)
    assert next_ticket_number(next_month) == f"TKT-{next_month:%Y%m}-00001"
    assert next_ticket_number(date(2031, 1, 5)) == "TKT-203101-00001"


def test_ticket_number_collision_draws_again(guest):
    first = Ticket.objects.create(user=guest, subject='A', description='First')
    prefix = f"TKT-{timezone.localdate():%Y%m}-"

    # A concurrent create read the same last number
    with mock.patch('support.models.next_ticket_number', side_effect=[first.ticket_number, f"{prefix}00002"]) as draw:
        second = Ticket.objects.create(user=guest, subject='B', description='Second')

    assert draw.call_count == 2
    assert second.ticket_number == f"{prefix}00002"
    assert Ticket.objects.count() == 2


def test_ticket_number_gives_up_after_repeated_collisions(guest):
    first = Ticket.objects.create(user=guest, subject='A', description='First')
    with mock.patch('support.models.next_ticket_number', return_value=first.ticket_number):
        with pytest.raises(IntegrityError):
            Ticket.objects.create(user=guest, subject='B', description='Second')
    assert Ticket.objects.count() == 1


def test_create_ticket_with_first_message(client_for, guest):
    response = open_ticket(client_for(guest))

    assert response.status_code == 201
    assert response.data['status'] == 'open'
    assert response.data['ticket_number'].startswith('TKT-')
    assert response.data['messages'][0]['content'] == 'The upload button does nothing on my listing.'


def test_users_only_see_their_tickets(client_for, guest, host, admin_user):
    open_ticket(client_for(guest))
    open_ticket(client_for(host), subject='Payout question', category='payment')

    assert client_for(guest).get(TICKETS_URL).data['count'] == 1
    assert client_for(admin_user).get(TICKETS_URL).data['count'] == 2
    filtered = client_for(admin_user).get(TICKETS_URL, {'category': 'payment'}).data
    assert filtered['results'][0]['subject'] == 'Payout question'
    assert client_for(admin_user).get(TICKETS_URL, {'search': 'payout'}).data['count'] == 1


def test_assigned_to_filter(client_for, guest, admin_user):
    open_ticket(client_for(guest))
    assigned = Ticket.objects.create(user=guest, subject='Refund', description='Where is my refund?',
                                     assigned_to=admin_user)
    client = client_for(admin_user)

    response = client.get(TICKETS_URL, {'assigned_to': admin_user.id})
    assert [t['id'] for t in response.data['results']] == [assigned.id]
    assert client.get(TICKETS_URL, {'assigned_to': 'unassigned'}).data['count'] == 1


@pytest.mark.parametrize('value', ['abc', '1.5', '-3'])
def test_assigned_to_filter_rejects_non_ids(client_for, admin_user, value):
    response = client_for(admin_user).get(TICKETS_URL, {'assigned_to': value})
    assert response.status_code == 400
    assert 'error' in response.data


def test_internal_notes_hidden_from_owner(client_for, guest, admin_user):
    ticket_id = open_ticket(client_for(guest)).data['id']
    client_for(admin_user).post(f'{TICKETS_URL}{ticket_id}/messages/',
                                {'content': 'Probably the CDN again', 'is_internal': True}, format='json')

    owner_view = client_for(guest).get(f'{TICKETS_URL}{ticket_id}/').data
    admin_view = client_for(admin_user).get(f'{TICKETS_URL}{ticket_id}/').data
    assert len(owner_view['messages']) == 1
    assert len(admin_view['messages']) == 2
    # Internal notes do not move the ticket
    assert admin_view['status'] == 'open'


def test_other_users_cannot_view(client_for, guest, make_user):
    ticket_id = open_ticket(client_for(guest)).data['id']
    assert client_for(make_user()).get(f'{TICKETS_URL}{ticket_id}/').status_code == 403


def test_reply_status_transitions(client_for, guest, admin_user):
    owner, agent = client_for(guest), client_for(admin_user)
    ticket_id = open_ticket(owner).data['id']
    url = f'{TICKETS_URL}{ticket_id}/messages/'

    assert agent.post(url, {'content': 'Which browser?'}, format='json').data['ticket']['status'] == 'pending'

    agent.patch(f'{TICKETS_URL}{ticket_id}/', {'status': 'resolved'}, format='json')
    assert owner.post(url, {'content': 'Still broken'}, format='json').data['ticket']['status'] == 'open'

    agent.patch(f'{TICKETS_URL}{ticket_id}/', {'status': 'closed'}, format='json')
    assert owner.post(url, {'content': 'Hello?'}, format='json').status_code == 400


def test_resolving_stamps_resolution_time(client_for, guest, admin_user):
    ticket_id = open_ticket(client_for(guest)).data['id']
    Ticket.objects.filter(pk=ticket_id).update(created_at=timezone.now() - timedelta(minutes=90))

    response = client_for(admin_user).patch(f'{TICKETS_URL}{ticket_id}/', {'status': 'resolved', 'tags': ['upload']},
                                            format='json')

    assert response.status_code == 200
    assert response.data['resolved_at'] is not None
    assert response.data['resolution_time'] == 90
    assert response.data['tags'] == ['upload']


def test_owner_cannot_update(client_for, guest):
    ticket_id = open_ticket(client_for(guest)).data['id']
    response = client_for(guest).patch(f'{TICKETS_URL}{ticket_id}/', {'status': 'closed'}, format='json')
    assert response.status_code == 403


def test_assign(client_for, guest, admin_user):
    ticket_id = open_ticket(client_for(guest)).data['id']
    client = client_for(admin_user)

    response = client.patch(f'{TICKETS_URL}{ticket_id}/assign/', {'agent_id': admin_user.id}, format='json')
    assert response.data['assigned_to']['id'] == admin_user.id
    assert client.patch(f'{TICKETS_URL}{ticket_id}/assign/', {'agent_id': guest.id}, format='json').status_code == 400


def test_rating_only_after_resolution(client_for, guest, admin_user):
    owner = client_for(guest)
    ticket_id = open_ticket(owner).data['id']
    url = f'{TICKETS_URL}{ticket_id}/rate/'

    assert owner.patch(url, {'rating': 5}, format='json').status_code == 400
    client_for(admin_user).patch(f'{TICKETS_URL}{ticket_id}/', {'status': 'resolved'}, format='json')
    assert owner.patch(url, {'rating': 6}, format='json').status_code == 400
    response = owner.patch(url, {'rating': 5, 'feedback': 'Quick fix'}, format='json')
    assert response.status_code == 200
    assert response.data['satisfaction_rating'] == 5


def test_stats(client_for, guest, admin_user):
    open_ticket(client_for(guest))
    open_ticket(client_for(guest), category='booking')

    response = client_for(admin_user).get(f'{TICKETS_URL}stats/')

    assert response.status_code == 200
    assert response.data['total'] == 2
    assert response.data['by_status']['open'] == 2
    assert response.data['by_category']['booking'] == 1
    assert client_for(guest).get(f'{TICKETS_URL}stats/').status_code == 403


def test_admin_delete(client_for, guest, admin_user):
    ticket_id = open_ticket(client_for(guest)).data['id']
    assert client_for(guest).delete(f'{TICKETS_URL}{ticket_id}/').status_code == 403
    assert client_for(admin_user).delete(f'{TICKETS_URL}{ticket_id}/').status_code == 204
    assert not Ticket.objects.filter(pk=ticket_id).exists()
