from zoneinfo import ZoneInfo

import pytest

from core.models import Branch, SchedulingConfiguration
from core.utils import ReferenceDataCache, get_operational_timezone
from utils.context import RequestContext, get_request_context


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# =============================================================================
# REFERENCE DATA CACHE
# =============================================================================

class TestReferenceDataCache:

    @pytest.fixture
    def loads(self):
        return []

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, loads, clock):
        records = {'a': 'Branch A', 'b': 'Branch B'}

        def loader(key):
            loads.append(key)
            return records.get(key)

        return ReferenceDataCache(loader, ttl=60, clock=clock)

    def test_second_lookup_is_a_hit(self, cache, loads):
        assert cache.get('a') == 'Branch A'
        assert cache.get('a') == 'Branch A'

        assert loads == ['a']
        assert (cache.hits, cache.misses) == (1, 1)
        assert 'a' in cache

    def test_entries_expire(self, cache, loads, clock):
        cache.get('a')
        clock.now += 60

        assert 'a' not in cache
        cache.get('a')
        assert loads == ['a', 'a']

    def test_missing_records_are_not_cached(self, cache, loads):
        assert cache.get('zzz') is None
        assert cache.get('zzz') is None
        assert loads == ['zzz', 'zzz']
        assert len(cache) == 0

    def test_invalidate(self, cache, loads):
        cache.get_many(['a', 'b'])

        cache.invalidate('a')
        assert 'a' not in cache and 'b' in cache

        cache.invalidate()
        assert len(cache) == 0

    def test_zero_ttl_never_serves_from_cache(self, loads, clock):
        cache = ReferenceDataCache(lambda key: loads.append(key) or key, ttl=0, clock=clock)
        cache.get('a')
        cache.get('a')
        assert loads == ['a', 'a']

    def test_negative_ttl(self):
        with pytest.raises(ValueError):
            ReferenceDataCache(lambda key: key, ttl=-1)


# =============================================================================
# CONFIGURATION / BRANCH
# =============================================================================

@pytest.mark.django_db
class TestSchedulingConfiguration:

    def test_singleton(self):
        first = SchedulingConfiguration.get_instance()
        first.makeup_limit_per_class = 3
        first.save()

        assert SchedulingConfiguration.get_instance().makeup_limit_per_class == 3
        assert SchedulingConfiguration.objects.count() == 1

    def test_defaults_from_settings(self, settings):
        settings.TUTORCENTER_SCHEDULING = {'holiday_lookup_months': 12}
        assert SchedulingConfiguration.get_instance().holiday_lookup_months == 12

    def test_cannot_be_deleted(self, config):
        config.delete()
        assert SchedulingConfiguration.objects.filter(pk=1).exists()

    def test_operational_timezone_falls_back_to_settings(self, settings):
        settings.TIME_ZONE = 'Asia/Tokyo'
        assert get_operational_timezone() == ZoneInfo('Asia/Tokyo')

    def test_branch_timezone(self, config):
        config.operational_timezone = 'Asia/Bangkok'
        config.save()

        own = Branch.objects.create(name="Tokyo", code="TYO", timezone='Asia/Tokyo')
        fallback = Branch.objects.create(name="Silom", code="SLM")

        assert own.get_timezone() == ZoneInfo('Asia/Tokyo')
        assert fallback.get_timezone() == ZoneInfo('Asia/Bangkok')


# =============================================================================
# AUDIT FIELDS
# =============================================================================

@pytest.mark.django_db
class TestAuditFields:

    def test_timestamps(self, branch):
        assert branch.created_at is not None
        created = branch.created_at

        branch.name = "Sukhumvit 2"
        branch.save()

        assert branch.created_at == created
        assert branch.updated_at >= created

    def test_request_context_fills_ip(self, config):
        with RequestContext(ip_address='192.168.1.10', request_path='manage.py test'):
            branch = Branch.objects.create(name="Bang Na", code="BNA")

        assert branch.created_from_ip == '192.168.1.10'
        assert branch.updated_from_ip == '192.168.1.10'
        assert get_request_context() is None

    def test_no_context_leaves_audit_fields_empty(self, branch):
        assert branch.created_by_id is None
        assert branch.created_from_ip is None
