from core.codec import StructuredDataCodec, canonical_json


def _record():
    return {
        "id": 7,
        "email": "user@example.com",
        "phone": "+65 1234 5678",
        "personalInfo": {"name": "田中太郎", "age": 30},
    }


def test_round_trip(encryption):
    codec = StructuredDataCodec(encryption)
    encrypted = codec.encrypt_fields(_record())

    assert encrypted["id"] == 7
    for name in ("email", "phone", "personalInfo"):
        assert isinstance(encrypted[name], str)
        assert encrypted[name].count(":") == 2
    assert "user@example.com" not in encrypted["email"]

    assert codec.decrypt_fields(encrypted) == _record()


def test_input_record_is_not_mutated(encryption):
    codec = StructuredDataCodec(encryption)
    record = _record()
    codec.encrypt_fields(record)
    assert record == _record()


def test_absent_and_empty_fields_are_left_alone(encryption):
    codec = StructuredDataCodec(encryption)
    encrypted = codec.encrypt_fields({"email": "", "name": "x"})
    assert encrypted == {"email": "", "name": "x"}
    assert codec.decrypt_fields(encrypted) == {"email": "", "name": "x"}


def test_failed_field_keeps_stored_value(encryption):
    """One bad field must not take the rest of the record down with it."""
    codec = StructuredDataCodec(encryption)
    stored = {
        "email": encryption.encrypt("user@example.com"),
        "phone": "+65 1234 5678",                        # legacy plaintext
        "personalInfo": encryption.encrypt("not json"),  # decrypts, does not parse
    }

    decrypted = codec.decrypt_fields(stored)

    assert decrypted["email"] == "user@example.com"
    assert decrypted["phone"] == "+65 1234 5678"
    assert decrypted["personalInfo"] == stored["personalInfo"]


def test_tampered_field_keeps_stored_value(encryption):
    codec = StructuredDataCodec(encryption)
    envelope = encryption.encrypt("user@example.com")
    iv, tag, ciphertext = envelope.split(":")
    tampered = f"{iv}:{tag}:{'0' if ciphertext[0] != '0' else '1'}{ciphertext[1:]}"

    assert codec.decrypt_fields({"email": tampered}) == {"email": tampered}


def test_custom_field_lists(encryption):
    codec = StructuredDataCodec(encryption, text_fields=("iban",), json_fields=())
    encrypted = codec.encrypt_fields({"iban": "DE89370400440532013000", "email": "a@b.c"})
    assert encrypted["email"] == "a@b.c"
    assert encrypted["iban"] != "DE89370400440532013000"
    assert codec.decrypt_fields(encrypted)["iban"] == "DE89370400440532013000"


def test_canonical_json_is_order_independent():
    assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
    assert canonical_json({"a": [1, 2], "b": 1}) == canonical_json({"b": 1, "a": [1, 2]})
    assert canonical_json({"city": "東京"}) == '{"city":"東京"}'
