"""Tests for the MCP server module."""

import os
import sys
import json
import pytest
from unittest.mock import patch

# Add src and mcp-server to path for imports BEFORE importing mcp modules
MCP_SERVER_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../mcp-server'))
SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src'))

if MCP_SERVER_PATH not in sys.path:
    sys.path.insert(0, MCP_SERVER_PATH)
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from mcp.types import Tool, TextContent

# Import server module from the mcp-server directory
import importlib.util
server_spec = importlib.util.spec_from_file_location("mcp_server", os.path.join(MCP_SERVER_PATH, "server.py"))
mcp_server = importlib.util.module_from_spec(server_spec)
server_spec.loader.exec_module(mcp_server)


EXPECTED_TOOLS = [
    'list_programs',
    'reload_programs',
    'get_program_overview',
    'list_available_years',
    'get_annual_summary',
    'get_tax_details',
    'get_notional_accounts',
    'get_projection_summary',
    'get_retirement_outlook',
    'compare_years',
    'search_projection_data',
    'compare_strategies',
    'compare_programs',
]


class TestServerConfiguration:

    def test_server_name(self):
        assert mcp_server.server.name == "ccpc-comp-planner"

    def test_program_param_schema(self):
        assert mcp_server.PROGRAM_PARAM['type'] == 'string'
        assert 'description' in mcp_server.PROGRAM_PARAM
        assert mcp_server.YEAR_PARAM['type'] == 'integer'


class TestGetTools:
    """Tests for get_tools function."""

    def setup_method(self):
        mcp_server.tools = None

    def teardown_method(self):
        mcp_server.tools = None

    def test_get_tools_initializes_on_first_call(self):
        tools = mcp_server.get_tools()
        # Check by class name since the module is loaded dynamically
        assert tools.__class__.__name__ == 'MultiProgramTools'
        assert 'ontario-dynamic' in tools.programs

    def test_get_tools_returns_cached_instance(self):
        assert mcp_server.get_tools() is mcp_server.get_tools()

    @patch.dict(os.environ, {'CCPC_PLANNER_PROGRAM': 'quebec-spouse-ipp'})
    def test_get_tools_uses_env_default_program(self):
        tools = mcp_server.get_tools()
        assert tools.default_program == 'quebec-spouse-ipp'


class TestListTools:

    @pytest.mark.asyncio
    async def test_list_tools_returns_tools(self):
        tools = await mcp_server.list_tools()
        assert all(isinstance(t, Tool) for t in tools)

    @pytest.mark.asyncio
    async def test_list_tools_contains_expected_tools(self):
        tools = await mcp_server.list_tools()
        assert [t.name for t in tools] == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_tools_have_descriptions_and_schemas(self):
        tools = await mcp_server.list_tools()
        for tool in tools:
            assert tool.description
            assert tool.inputSchema['type'] == 'object'

    @pytest.mark.asyncio
    async def test_required_parameters(self):
        tools = {t.name: t for t in await mcp_server.list_tools()}
        assert tools['get_annual_summary'].inputSchema['required'] == ['year']
        assert tools['get_tax_details'].inputSchema['required'] == ['year']
        assert tools['compare_years'].inputSchema['required'] == ['year1', 'year2']
        assert tools['search_projection_data'].inputSchema['required'] == ['query']
        assert tools['compare_programs'].inputSchema['required'] == ['program1', 'program2']
        assert tools['get_notional_accounts'].inputSchema['required'] == []


class TestCallTool:
    """Tests for call_tool function."""

    def setup_method(self):
        mcp_server.tools = None

    @staticmethod
    async def call(name, arguments):
        result = await mcp_server.call_tool(name, arguments)
        assert len(result) == 1
        assert isinstance(result[0], TextContent)
        return json.loads(result[0].text)

    @pytest.mark.asyncio
    async def test_call_list_programs(self):
        data = await self.call('list_programs', {})
        assert {'ontario-dynamic', 'ontario-dividends-only', 'quebec-spouse-ipp'} <= set(data['available_programs'])

    @pytest.mark.asyncio
    async def test_call_reload_programs(self):
        data = await self.call('reload_programs', {})
        assert data['status'] == 'success'

    @pytest.mark.asyncio
    async def test_call_get_program_overview(self):
        data = await self.call('get_program_overview', {'program': 'quebec-spouse-ipp'})
        assert data['province'] == 'QC'
        assert data['program'] == 'quebec-spouse-ipp'

    @pytest.mark.asyncio
    async def test_call_requires_program_when_several_exist(self):
        data = await self.call('get_program_overview', {})
        assert 'Multiple programs available' in data['error']

    @pytest.mark.asyncio
    async def test_call_list_available_years(self):
        data = await self.call('list_available_years', {'program': 'ontario-dynamic'})
        assert data['years'] == [2026, 2027, 2028, 2029, 2030]

    @pytest.mark.asyncio
    async def test_call_get_annual_summary(self):
        data = await self.call('get_annual_summary', {'year': 2027, 'program': 'ontario-dynamic'})
        assert data['year'] == 2027
        assert data['program'] == 'ontario-dynamic'

    @pytest.mark.asyncio
    async def test_call_get_tax_details_quebec(self):
        data = await self.call('get_tax_details', {'year': 2026, 'program': 'quebec-spouse-ipp'})
        assert data['payroll']['qpip'] > 0
        assert 'spouse' in data

    @pytest.mark.asyncio
    async def test_call_get_notional_accounts(self):
        data = await self.call('get_notional_accounts', {'program': 'ontario-dynamic'})
        assert len(data['yearly_accounts']) == 5
        data = await self.call('get_notional_accounts', {'year': 2028, 'program': 'ontario-dynamic'})
        assert data['year'] == 2028

    @pytest.mark.asyncio
    async def test_call_get_projection_summary(self):
        data = await self.call('get_projection_summary', {'program': 'quebec-spouse-ipp'})
        assert 'ipp' in data
        assert 'spouse' in data

    @pytest.mark.asyncio
    async def test_call_get_retirement_outlook(self):
        data = await self.call('get_retirement_outlook', {'program': 'quebec-spouse-ipp'})
        assert data['cpp']['start_age'] == 67
        assert data['oas']['start_age'] == 67

    @pytest.mark.asyncio
    async def test_call_compare_years(self):
        data = await self.call('compare_years', {'year1': 2026, 'year2': 2030, 'program': 'ontario-dynamic'})
        assert data['comparison'] == '2026 vs 2030'

    @pytest.mark.asyncio
    async def test_call_search_projection_data(self):
        data = await self.call('search_projection_data', {'query': 'grind', 'program': 'ontario-dynamic'})
        assert data['query'] == 'grind'
        assert len(data['years']) == 5

    @pytest.mark.asyncio
    async def test_call_compare_strategies(self):
        data = await self.call('compare_strategies', {'program': 'ontario-dividends-only'})
        assert data['strategies'][0]['id'] == 'current-setup'
        assert 'best_overall' in data['winner']

    @pytest.mark.asyncio
    async def test_call_compare_programs(self):
        data = await self.call('compare_programs', {
            'program1': 'ontario-dynamic',
            'program2': 'ontario-dividends-only',
            'metrics': ['total_tax', 'rrsp_room'],
        })
        assert list(data['metrics']) == ['total_tax', 'rrsp_room']
        assert 'recommendation' in data

    @pytest.mark.asyncio
    async def test_call_unknown_tool(self):
        data = await self.call('unknown_tool', {})
        assert 'Unknown tool' in data['error']

    @pytest.mark.asyncio
    async def test_call_missing_required_argument(self):
        data = await self.call('get_annual_summary', {'program': 'ontario-dynamic'})
        assert 'error' in data

    @pytest.mark.asyncio
    async def test_call_unknown_program(self):
        data = await self.call('get_annual_summary', {'year': 2026, 'program': 'nope'})
        assert "Program 'nope' not found" in data['error']


class TestResponseFormat:

    def setup_method(self):
        mcp_server.tools = None

    @pytest.mark.asyncio
    async def test_every_tool_returns_json(self):
        tools = await mcp_server.list_tools()

        for tool in tools:
            required = tool.inputSchema.get('required', [])
            args = {'program': 'ontario-dynamic'}
            if 'year' in required:
                args['year'] = 2026
            if 'year1' in required:
                args['year1'] = 2026
                args['year2'] = 2030
            if 'query' in required:
                args['query'] = 'salary'
            if 'program1' in required:
                args['program1'] = 'ontario-dynamic'
                args['program2'] = 'quebec-spouse-ipp'

            result = await mcp_server.call_tool(tool.name, args)
            data = json.loads(result[0].text)
            assert isinstance(data, dict)
            assert 'error' not in data, f"{tool.name}: {data.get('error')}"
