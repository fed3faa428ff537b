"""
Unit Tests for the master catalog and tenant models
"""

from honeycert.models.master import Admin, MasterBase, TenantDatabase
from honeycert.models.tenant import Apiary, Batch, TenantBase


class TestMasterModels:
    """Test suite for master catalog table definitions"""

    def test_catalog_tables(self):
        assert set(MasterBase.metadata.tables) == {"admins", "databases"}

    def test_timestamps_are_managed_by_columns(self):
        """created_at/updated_at defaults live on the columns, no event hooks needed"""
        for model in (Admin, TenantDatabase):
            columns = model.__table__.c
            assert columns.created_at.default is not None
            assert columns.updated_at.default is not None
            assert columns.updated_at.onupdate is not None
            assert columns.updated_at.type.timezone is True

    def test_tenant_name_is_unique(self):
        assert TenantDatabase.__table__.c.name.unique is True

    def test_repr(self):
        assert repr(TenantDatabase(id="abc")) == "<TenantDatabase(id=abc)>"


class TestTenantModels:

    def test_tenant_tables_are_separate_from_catalog(self):
        assert set(TenantBase.metadata.tables) == {"batches", "apiaries"}
        assert Batch.__table__.metadata is not MasterBase.metadata
        assert Apiary.__table__.c.batch_id.foreign_keys
