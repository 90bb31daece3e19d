"""Pipeline stages.

Each stage reads its inputs, writes one artifact, and returns a report:
- process_schools: GIAS + Ofsted → ``schools.json``
- process_boundaries: postcode polygons → ``postcode-districts.json``
- process_commute_times: boundaries → ``commuteMinutes`` metric
- process_house_prices: Price Paid CSV → ``medianPrice`` metric
"""
