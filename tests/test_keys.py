from typing import Any, Dict

from pydantic import BaseModel

from notification_hub import Key, new_key


class SamplePerson(BaseModel):
    name: str
    age: int


class Names:
    person: Key[SamplePerson] = new_key(SamplePerson)
    scores: Key[Dict[str, int]] = new_key(Dict[str, int])
    labelled: Key[str] = new_key(str, name="custom.label")


def test_keys_compare_by_identifier_only():
    a = new_key(int)
    b = new_key(int)
    assert a != b
    assert a == a
    assert hash(a) != hash(b)
    # same id with a different payload witness is still the same key
    assert Key(model=str, id=a.id) == a
    assert len({a, b, a}) == 2


def test_namespace_attribute_names_the_key():
    assert Names.person.name == "Names.person"
    assert Names.person.label == "Names.person"
    assert "SamplePerson" in repr(Names.person)


def test_explicit_name_is_kept():
    assert Names.labelled.name == "custom.label"


def test_anonymous_key_label_falls_back_to_id():
    key = new_key(int)
    assert key.name is None
    assert key.label == str(key.id)


def test_accepts_checks_plain_classes():
    assert Names.person.accepts(SamplePerson(name="a", age=1))
    assert not Names.person.accepts({"name": "a", "age": 1})


def test_accepts_is_permissive_for_typing_forms():
    assert Names.scores.accepts({"a": 1})
    assert Names.scores.accepts("anything")
    assert new_key(Any).accepts(object())
