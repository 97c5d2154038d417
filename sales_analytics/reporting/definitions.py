"""
Report Catalog

The standing business questions about the supermarket sales table, each as a
declarative Report. Aliases follow the column names analysts already use in
the console queries these reports replace.
"""

from typing import Dict, List, Tuple

from sales_analytics.exceptions import ConfigurationError
from sales_analytics.transformation.enrichers import WEEKEND_DAYS
from .report import (
    ComparisonMode,
    DimensionFilter,
    GlobalComparison,
    RankWithinPartition,
    Report,
    ReportCategory,
    asc,
    count,
    count_distinct,
    desc,
    mean,
    rounded_mean,
    total,
)

# =============================================================================
# GENERIC
# =============================================================================

GENERIC_REPORTS: Tuple[Report, ...] = (
    Report(
        name="unique_cities",
        question="How many unique cities does the data have?",
        group_by=("city",),
        category=ReportCategory.GENERIC,
    ),
    Report(
        name="branch_cities",
        question="In which city is each branch?",
        group_by=("branch", "city"),
        category=ReportCategory.GENERIC,
    ),
)

# =============================================================================
# PRODUCT
# =============================================================================

PRODUCT_REPORTS: Tuple[Report, ...] = (
    Report(
        name="product_line_count",
        question="How many unique product lines does the data have?",
        aggregates=(count_distinct("product_line", "product_count"),),
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_payment_method",
        question="What is the most common payment method?",
        group_by=("payment_method",),
        aggregates=(count("count"),),
        order_by=(desc("count"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_selling_product_line",
        question="What is the most selling product line?",
        group_by=("product_line",),
        aggregates=(count("cnt"),),
        order_by=(desc("cnt"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="revenue_by_month",
        question="What is the total revenue by month?",
        group_by=("month",),
        aggregates=(total("total", "total_revenue"),),
        order_by=(desc("total_revenue"),),
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_cogs_month",
        question="What month had the largest COGS?",
        group_by=("month",),
        aggregates=(total("cogs", "total"),),
        order_by=(desc("total"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_revenue_product_line",
        question="What product line had the largest revenue?",
        group_by=("product_line",),
        aggregates=(total("total", "revenue"),),
        order_by=(desc("revenue"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_revenue_city",
        question="Which city has the largest revenue?",
        group_by=("city",),
        aggregates=(total("total", "revenue"),),
        order_by=(desc("revenue"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_vat_product_line",
        question="What product line had the largest VAT?",
        group_by=("product_line",),
        aggregates=(mean("vat", "vat"),),
        order_by=(desc("vat"),),
        limit=1,
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="product_line_remarks",
        question="Is each product line's average sale above (Good) or not above (Bad) the overall average?",
        group_by=("product_line",),
        aggregates=(rounded_mean("total", "avg_sales"),),
        compare=GlobalComparison(measure="total", label_alias="remarks"),
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="branches_above_avg_quantity",
        question="Which branch sold more products than average product sold?",
        group_by=("branch",),
        aggregates=(mean("quantity", "avg_sale"),),
        compare=GlobalComparison(measure="quantity", mode=ComparisonMode.ABOVE),
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="top_product_line_by_gender",
        question="What is the most common product line by gender?",
        group_by=("gender", "product_line"),
        aggregates=(count("occurrences"),),
        rank=RankWithinPartition(partition_by=("gender",), order_by="occurrences", rank_alias="row_num"),
        category=ReportCategory.PRODUCT,
    ),
    Report(
        name="product_line_ratings",
        question="What is the average rating of each product line?",
        group_by=("product_line",),
        aggregates=(rounded_mean("rating", "avg_rating"),),
        order_by=(desc("avg_rating"),),
        category=ReportCategory.PRODUCT,
    ),
)

# =============================================================================
# SALES
# =============================================================================

SALES_ACTIVITY_REPORTS: Tuple[Report, ...] = (
    Report(
        name="weekday_sales_by_time_of_day",
        question="Number of sales made in each time of the day per weekday",
        group_by=("day_name", "time_of_day"),
        aggregates=(total("quantity", "num_of_sales"),),
        where=DimensionFilter("day_name", WEEKEND_DAYS, exclude=True),
        order_by=(desc("num_of_sales"),),
        category=ReportCategory.SALES,
    ),
    Report(
        name="top_revenue_customer_type",
        question="Which of the customer types brings the most revenue?",
        group_by=("customer_type",),
        aggregates=(total("total", "revenue"),),
        order_by=(desc("revenue"),),
        limit=1,
        category=ReportCategory.SALES,
    ),
    Report(
        name="top_vat_city",
        question="Which city has the largest tax percent / VAT?",
        group_by=("city",),
        aggregates=(mean("vat", "avg_tax"),),
        order_by=(desc("avg_tax"),),
        limit=1,
        category=ReportCategory.SALES,
    ),
    Report(
        name="top_vat_customer_type",
        question="Which customer type pays the most in VAT?",
        group_by=("customer_type",),
        aggregates=(total("vat", "total_tax"),),
        order_by=(desc("total_tax"),),
        limit=1,
        category=ReportCategory.SALES,
    ),
)

# =============================================================================
# CUSTOMER
# =============================================================================

CUSTOMER_REPORTS: Tuple[Report, ...] = (
    Report(
        name="customer_type_count",
        question="How many unique customer types does the data have?",
        aggregates=(count_distinct("customer_type", "cust_types_count"),),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="payment_method_count",
        question="How many unique payment methods does the data have?",
        aggregates=(count_distinct("payment_method", "type_of_paymethods"),),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="top_customer_type",
        question="What is the most common customer type?",
        group_by=("customer_type",),
        aggregates=(count("no_of_customers"),),
        order_by=(desc("no_of_customers"),),
        limit=1,
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="top_buying_customer_type",
        question="Which customer type buys the most?",
        group_by=("customer_type",),
        aggregates=(count("visits"),),
        order_by=(desc("visits"),),
        limit=1,
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="gender_distribution",
        question="What is the gender of most of the customers?",
        group_by=("gender",),
        aggregates=(count("no_of_visitors"),),
        order_by=(desc("no_of_visitors"),),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="gender_by_branch",
        question="What is the gender distribution per branch?",
        group_by=("branch", "gender"),
        aggregates=(count("cnt"),),
        order_by=(asc("branch"), desc("cnt")),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="ratings_by_time_of_day",
        question="Which time of the day do customers give most ratings?",
        group_by=("time_of_day",),
        aggregates=(count("num_of_ratings"),),
        order_by=(desc("num_of_ratings"),),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="ratings_by_branch_time_of_day",
        question="Which time of the day do customers give most ratings per branch?",
        group_by=("branch", "time_of_day"),
        aggregates=(count("num_of_ratings"),),
        order_by=(asc("branch"), desc("num_of_ratings")),
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="top_rated_day",
        question="Which day of the week has the best avg ratings?",
        group_by=("day_name",),
        aggregates=(mean("rating", "avg_rating"),),
        order_by=(desc("avg_rating"),),
        limit=1,
        category=ReportCategory.CUSTOMER,
    ),
    Report(
        name="top_rated_day_by_branch",
        question="Which day of the week has the best average ratings per branch?",
        group_by=("branch", "day_name"),
        aggregates=(rounded_mean("rating", "avg_rating"),),
        rank=RankWithinPartition(partition_by=("branch",), order_by="avg_rating", rank_alias="day_rank"),
        category=ReportCategory.CUSTOMER,
    ),
)

ALL_REPORTS: Tuple[Report, ...] = GENERIC_REPORTS + PRODUCT_REPORTS + SALES_ACTIVITY_REPORTS + CUSTOMER_REPORTS

REPORTS_BY_NAME: Dict[str, Report] = {r.name: r for r in ALL_REPORTS}


def get_report(name: str) -> Report:
    """Look up a catalog report by name"""
    try:
        return REPORTS_BY_NAME[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown report, available: {', '.join(REPORTS_BY_NAME)}", name
        ) from None


def reports_in_category(category: ReportCategory) -> List[Report]:
    category = ReportCategory(category)
    return [r for r in ALL_REPORTS if r.category == category]


def select_reports(names=None) -> List[Report]:
    """Catalog reports by name, or all of them when names is empty"""
    if not names:
        return list(ALL_REPORTS)
    return [get_report(n) for n in names]
