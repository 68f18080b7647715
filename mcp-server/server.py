#!/usr/bin/env python3
"""MCP Server for the CCPC compensation planner.

This server exposes the multi-year salary/dividend projection as MCP tools,
allowing AI assistants to answer questions about an owner-manager's plan.
"""

import os
import sys
import json
import asyncio
import logging
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiProgramTools

logger = logging.getLogger(__name__)

# Create the MCP server
server = Server("ccpc-comp-planner")

# Global tools instance (initialized on startup)
tools: MultiProgramTools | None = None


def get_tools() -> MultiProgramTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default program can be set via CCPC_PLANNER_PROGRAM env var
        default_program = os.environ.get('CCPC_PLANNER_PROGRAM')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiProgramTools(base_path, default_program)
    return tools


# Common program parameter schema
PROGRAM_PARAM = {
    "type": "string",
    "description": "The program name (folder in input-parameters). If not specified, uses the default program. Use list_programs to see available programs."
}

YEAR_PARAM = {
    "type": "integer",
    "description": "Calendar year in the projection"
}


def _schema(required=(), **properties) -> dict:
    """JSON schema for a tool's arguments; every tool also takes an optional program."""
    properties.setdefault("program", PROGRAM_PARAM)
    return {"type": "object", "properties": properties, "required": list(required)}


def _param(description: str, type_: str = "integer") -> dict:
    return {"type": type_, "description": description}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available projection tools."""
    return [
        Tool(
            name="list_programs",
            description="List all available projection programs with their province, horizon and salary strategy.",
            inputSchema={"type": "object", "properties": {}, "required": []}
        ),
        Tool(
            name="reload_programs",
            description="Reload all programs from disk. Use this after adding, modifying, or removing program spec.json files to refresh the cache without restarting the server.",
            inputSchema={"type": "object", "properties": {}, "required": []}
        ),
        Tool(
            name="get_program_overview",
            description="Get an overview of the projection inputs: province, horizon, required income, salary strategy, starting corporate balances and options. Use this first to understand the scope of the plan.",
            inputSchema=_schema()
        ),
        Tool(
            name="list_available_years",
            description="List all calendar years covered by the projection, indicating which years pay a salary.",
            inputSchema=_schema()
        ),
        Tool(
            name="get_annual_summary",
            description="Get the compensation and tax summary for a specific year: salary, dividends, personal, corporate and payroll tax, integrated rate, after-tax income and corporate balance.",
            inputSchema=_schema(["year"], year=YEAR_PARAM)
        ),
        Tool(
            name="get_tax_details",
            description="Get the detailed tax breakdown for a specific year: dividend types, federal and provincial tax, surtax, health premium, CPP/CPP2/EI/QPIP, employer health tax, corporate tax on active and passive income, RDTOH refund and passive income grind.",
            inputSchema=_schema(["year"], year=YEAR_PARAM)
        ),
        Tool(
            name="get_notional_accounts",
            description="Get end-of-year CDA, eRDTOH, nRDTOH, GRIP, corporate investment balance and ACB for a specific year or all years.",
            inputSchema=_schema(year=_param("Optional: specific year. If omitted, returns all years."))
        ),
        Tool(
            name="get_projection_summary",
            description="Get totals and effective rates across the whole projection, including IPP and spouse totals when they apply.",
            inputSchema=_schema()
        ),
        Tool(
            name="get_retirement_outlook",
            description="Get the projected CPP benefit, OAS after clawback, and the RRIF minimum withdrawal schedule.",
            inputSchema=_schema()
        ),
        Tool(
            name="compare_years",
            description="Compare salary, dividends, taxes, after-tax income and corporate balance between two years.",
            inputSchema=_schema(["year1", "year2"],
                                year1=_param("First year to compare"),
                                year2=_param("Second year to compare"))
        ),
        Tool(
            name="search_projection_data",
            description="Search for specific projection metrics. Use this when looking for values like 'RDTOH in 2030' or 'CPP2 in 2027'.",
            inputSchema=_schema(["query"],
                                query=_param("Natural language query, e.g., 'capital dividend', 'grind', 'after tax'",
                                                "string"),
                                year=_param("Optional: specific year to search in"))
        ),
        Tool(
            name="compare_strategies",
            description="Run the program under salary at YMPE, dividends only and the dynamic optimizer (plus the current setup when it differs) and report tax, corporate balance, RRSP room and after-tax wealth for each, with winners.",
            inputSchema=_schema()
        ),
        Tool(
            name="compare_programs",
            description="Compare two programs and get analysis of which is better. Compares total compensation, taxes, effective rate, final corporate balance and RRSP room. Returns a recommendation on which program is better overall.",
            inputSchema={
                "type": "object",
                "properties": {
                    "program1": _param("First program name to compare", "string"),
                    "program2": _param("Second program name to compare", "string"),
                    "metrics": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: specific metrics to compare. Options: 'total_compensation', 'total_tax', 'personal_tax', 'corporate_tax', 'effective_tax_rate', 'final_corporate_balance', 'rrsp_room'. If not specified, compares all metrics."
                    }
                },
                "required": ["program1", "program2"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        planner = get_tools()
        program = arguments.get("program")

        if name == "list_programs":
            result = planner.list_programs()
        elif name == "reload_programs":
            result = planner.reload_programs()
        elif name == "get_program_overview":
            result = planner.get_program_overview(program)
        elif name == "list_available_years":
            result = planner.list_available_years(program)
        elif name == "get_annual_summary":
            result = planner.get_annual_summary(arguments["year"], program)
        elif name == "get_tax_details":
            result = planner.get_tax_details(arguments["year"], program)
        elif name == "get_notional_accounts":
            result = planner.get_notional_accounts(arguments.get("year"), program)
        elif name == "get_projection_summary":
            result = planner.get_projection_summary(program)
        elif name == "get_retirement_outlook":
            result = planner.get_retirement_outlook(program)
        elif name == "compare_years":
            result = planner.compare_years(arguments["year1"], arguments["year2"], program)
        elif name == "search_projection_data":
            result = planner.search_projection_data(
                arguments["query"],
                arguments.get("year"),
                program
            )
        elif name == "compare_strategies":
            result = planner.compare_strategies(program)
        elif name == "compare_programs":
            result = planner.compare_programs(
                arguments["program1"],
                arguments["program2"],
                arguments.get("metrics")
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
