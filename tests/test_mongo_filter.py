import pytest
from bson import ObjectId

from drivers.errors import QueryError
from drivers.mongo_filter import coerce_value, parse_filter, parse_simple_filter


def test_simple_pairs_and_combined():
    assert parse_simple_filter('age=25,status=active') == {'age': 25, 'status': 'active'}


def test_object_id_coercion():
    assert parse_simple_filter('_id=507f1f77bcf86cd799439011') == {'_id': ObjectId('507f1f77bcf86cd799439011')}
    assert parse_simple_filter('_id=notanid') == {'_id': 'notanid'}


@pytest.mark.parametrize('raw,expected', [
    ('42', 42),
    ('-7', -7),
    ('1.5', 1.5),
    ('1e3', 1000.0),
    ('true', True),
    ('false', False),
    ('True', 'True'),
    ('abc', 'abc'),
    ('', ''),
    ('99999999999999999999', 1e20),
])
def test_value_coercion_order(raw, expected):
    value = coerce_value('field', raw)
    assert value == expected
    assert type(value) is type(expected)


def test_malformed_pairs_are_skipped():
    assert parse_simple_filter('bad,a=b=c, name = bob ,=x') == {'name': 'bob'}


def test_json_filter():
    assert parse_filter('{"age": {"$gt": 21}}') == {'age': {'$gt': 21}}


def test_extended_json_filter():
    doc = parse_filter('{"_id": {"$oid": "507f1f77bcf86cd799439011"}}')
    assert doc == {'_id': ObjectId('507f1f77bcf86cd799439011')}


def test_blank_filter_matches_all():
    assert parse_filter('') == {}
    assert parse_filter('   ') == {}
    assert parse_filter(None) == {}


def test_simple_filter_without_pairs_is_rejected():
    with pytest.raises(QueryError):
        parse_filter('25')
    with pytest.raises(QueryError):
        parse_filter('status')
    assert parse_filter('qty=5') == {'qty': 5}


@pytest.mark.parametrize('text', [
    '{"_id": {"$oid": 5}}',
    '{"created": {"$date": "garbage"}}',
    '{"age": ',
    '[1, 2]',
])
def test_bad_filter_document_raises(text):
    with pytest.raises(QueryError):
        parse_filter(text)
