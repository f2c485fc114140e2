from cif_loader.domain.cif.validators import validate_train_identity, validate_train_uid


def test_train_identity():
    assert validate_train_identity("1A23") is True
    assert validate_train_identity("2z99") is True
    assert validate_train_identity("AA23") is False
    assert validate_train_identity("1A234") is False
    assert validate_train_identity(None) is False


def test_train_uid():
    assert validate_train_uid("A12345") is True
    assert validate_train_uid("12345A") is False
    assert validate_train_uid("A1234") is False
    assert validate_train_uid(None) is False
