import pytest
from pgcall.options import CallOptions


def test_init_defaults():
    """Test default initialization"""
    options = CallOptions(
        hostname='testhost',
        username='testuser',
        password='testpass',
        database='testdb',
        port=1234,
    )

    assert options.drivername == 'postgresql'
    assert options.appname is not None
    assert options.autocommit is True
    assert options.timeout == 0


def test_explicit_appname_kept():
    options = CallOptions(hostname='h', username='u', password='p',
                          database='d', port=5432, appname='nightly_batch')
    assert options.appname == 'nightly_batch'


def test_validation():
    """Test validation rules"""
    with pytest.raises(ValueError, match='drivername must be one of'):
        CallOptions(
            drivername='sqlite',
            hostname='testhost',
            username='testuser',
            password='testpass',
            database='testdb',
            port=1234,
        )

    with pytest.raises(ValueError, match='cannot be None or 0'):
        CallOptions(drivername='postgresql', hostname='testhost')


@pytest.mark.parametrize('missing', ['hostname', 'username', 'password', 'database', 'port'])
def test_required_fields(missing):
    values = {'hostname': 'h', 'username': 'u', 'password': 'p', 'database': 'd', 'port': 5432}
    values[missing] = None
    with pytest.raises(ValueError, match=f'field {missing}'):
        CallOptions(**values)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
