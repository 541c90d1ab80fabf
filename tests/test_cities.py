import pytest

from cities import services
from cities.data import ALGERIAN_CITIES


def test_reference_table_has_72_cities():
    assert len(ALGERIAN_CITIES) == 72
    assert len({c.id for c in ALGERIAN_CITIES}) == 72


@pytest.mark.parametrize('query', ['', 'a', ' b '])
def test_short_queries_return_nothing(query):
    assert services.search_cities(query) == []


def test_search_ignores_accents():
    names = [c['name'] for c in services.search_cities('bejaia')]
    assert 'Béjaïa' in names


def test_search_matches_wilaya_and_sorts_by_population():
    results = services.search_cities('alger', limit=3)
    assert [c['name'] for c in results][0] == 'Alger'
    populations = [c['population'] for c in results]
    assert populations == sorted(populations, reverse=True)
    assert len(results) == 3


def test_search_arabic_name():
    results = services.search_cities('وهران')
    assert results[0]['name'] == 'Oran'


def test_serialized_city_has_display_fields():
    city = services.get_city(1)
    assert city['formatted_address'] == 'Alger, Alger, Algeria'
    assert city['display'] == 'Alger, Alger'
    assert city['coordinates'] == [36.7538, 3.0588]


def test_list_cities_by_wilaya():
    results = services.list_cities(wilaya_code=31)
    assert {c['wilaya'] for c in results} == {'Oran'}
    assert results[0]['name'] == 'Oran'


def test_wilayas_sorted_by_code():
    codes = [w['code'] for w in services.list_wilayas()]
    assert codes == sorted(codes)
    assert len(codes) == len(set(codes))


def test_place_names_matching_folds_accents():
    assert 'Béjaïa' in services.place_names_matching('bejaia')


@pytest.mark.django_db
def test_search_endpoint(api_client):
    response = api_client.get('/api/cities/search/', {'q': 'oran'})
    assert response.status_code == 200
    assert response.data['results'][0]['name'] == 'Oran'


@pytest.mark.django_db
def test_city_detail_not_found(api_client):
    response = api_client.get('/api/cities/9999/')
    assert response.status_code == 404


@pytest.mark.django_db
def test_wilaya_endpoint(api_client):
    response = api_client.get('/api/cities/wilayas/')
    assert response.status_code == 200
    assert {'code': 16, 'name': 'Alger'} in response.data['results']
