"""Text renderers for projection output."""

from render.renderers import (
    BaseRenderer,
    YearDetailsRenderer,
    AnnualSummaryRenderer,
    NotionalAccountsRenderer,
    RetirementRenderer,
    StrategyComparisonRenderer,
    CustomRenderer,
    custom_renderer_factory,
    load_custom_renderers,
    parse_year_range,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'YearDetailsRenderer',
    'AnnualSummaryRenderer',
    'NotionalAccountsRenderer',
    'RetirementRenderer',
    'StrategyComparisonRenderer',
    'CustomRenderer',
    'custom_renderer_factory',
    'load_custom_renderers',
    'parse_year_range',
    'RENDERER_REGISTRY',
]
