"""
Static airport reference table.

Seeded once into the flight catalog at startup and never mutated.
"""

from contracts.validation import Airport

MAJOR_AIRPORTS = (
    Airport(iata="JFK", icao="KJFK", name="John F. Kennedy International", city="New York", country="USA", latitude=40.6413, longitude=-73.7781),
    Airport(iata="LGA", icao="KLGA", name="LaGuardia Airport", city="New York", country="USA", latitude=40.7769, longitude=-73.8740),
    Airport(iata="EWR", icao="KEWR", name="Newark Liberty International", city="Newark", country="USA", latitude=40.6895, longitude=-74.1745),
    Airport(iata="LAX", icao="KLAX", name="Los Angeles International", city="Los Angeles", country="USA", latitude=33.9425, longitude=-118.4081),
    Airport(iata="SFO", icao="KSFO", name="San Francisco International", city="San Francisco", country="USA", latitude=37.6213, longitude=-122.3790),
    Airport(iata="ORD", icao="KORD", name="O'Hare International", city="Chicago", country="USA", latitude=41.9742, longitude=-87.9073),
    Airport(iata="MIA", icao="KMIA", name="Miami International", city="Miami", country="USA", latitude=25.7959, longitude=-80.2870),
    Airport(iata="BOS", icao="KBOS", name="Boston Logan International", city="Boston", country="USA", latitude=42.3656, longitude=-71.0096),
    Airport(iata="ATL", icao="KATL", name="Hartsfield-Jackson Atlanta", city="Atlanta", country="USA", latitude=33.6407, longitude=-84.4277),
    Airport(iata="DFW", icao="KDFW", name="Dallas/Fort Worth International", city="Dallas", country="USA", latitude=32.8998, longitude=-97.0403),
    Airport(iata="SEA", icao="KSEA", name="Seattle-Tacoma International", city="Seattle", country="USA", latitude=47.4502, longitude=-122.3088),
    Airport(iata="YYZ", icao="CYYZ", name="Toronto Pearson International", city="Toronto", country="Canada", latitude=43.6777, longitude=-79.6248),
    Airport(iata="YVR", icao="CYVR", name="Vancouver International", city="Vancouver", country="Canada", latitude=49.1967, longitude=-123.1815),
    Airport(iata="MEX", icao="MMMX", name="Mexico City International", city="Mexico City", country="Mexico", latitude=19.4361, longitude=-99.0719),
    Airport(iata="LHR", icao="EGLL", name="London Heathrow", city="London", country="UK", latitude=51.4700, longitude=-0.4543),
    Airport(iata="LGW", icao="EGKK", name="London Gatwick", city="London", country="UK", latitude=51.1537, longitude=-0.1821),
    Airport(iata="CDG", icao="LFPG", name="Charles de Gaulle", city="Paris", country="France", latitude=49.0097, longitude=2.5479),
    Airport(iata="ORY", icao="LFPO", name="Paris Orly", city="Paris", country="France", latitude=48.7233, longitude=2.3795),
    Airport(iata="FRA", icao="EDDF", name="Frankfurt Airport", city="Frankfurt", country="Germany", latitude=50.0379, longitude=8.5622),
    Airport(iata="MUC", icao="EDDM", name="Munich Airport", city="Munich", country="Germany", latitude=48.3537, longitude=11.7750),
    Airport(iata="AMS", icao="EHAM", name="Amsterdam Schiphol", city="Amsterdam", country="Netherlands", latitude=52.3105, longitude=4.7683),
    Airport(iata="MAD", icao="LEMD", name="Madrid Barajas", city="Madrid", country="Spain", latitude=40.4983, longitude=-3.5676),
    Airport(iata="BCN", icao="LEBL", name="Barcelona El Prat", city="Barcelona", country="Spain", latitude=41.2974, longitude=2.0833),
    Airport(iata="FCO", icao="LIRF", name="Rome Fiumicino", city="Rome", country="Italy", latitude=41.8003, longitude=12.2389),
    Airport(iata="ZRH", icao="LSZH", name="Zurich Airport", city="Zurich", country="Switzerland", latitude=47.4647, longitude=8.5492),
    Airport(iata="VIE", icao="LOWW", name="Vienna International", city="Vienna", country="Austria", latitude=48.1103, longitude=16.5697),
    Airport(iata="CPH", icao="EKCH", name="Copenhagen Airport", city="Copenhagen", country="Denmark", latitude=55.6180, longitude=12.6560),
    Airport(iata="DUB", icao="EIDW", name="Dublin Airport", city="Dublin", country="Ireland", latitude=53.4264, longitude=-6.2499),
    Airport(iata="IST", icao="LTFM", name="Istanbul Airport", city="Istanbul", country="Turkey", latitude=41.2753, longitude=28.7519),
    Airport(iata="DXB", icao="OMDB", name="Dubai International", city="Dubai", country="UAE", latitude=25.2532, longitude=55.3657),
    Airport(iata="HKG", icao="VHHH", name="Hong Kong International", city="Hong Kong", country="Hong Kong", latitude=22.3080, longitude=113.9185),
    Airport(iata="SIN", icao="WSSS", name="Singapore Changi", city="Singapore", country="Singapore", latitude=1.3644, longitude=103.9915),
    Airport(iata="NRT", icao="RJAA", name="Narita International", city="Tokyo", country="Japan", latitude=35.7720, longitude=140.3929),
    Airport(iata="HND", icao="RJTT", name="Tokyo Haneda", city="Tokyo", country="Japan", latitude=35.5494, longitude=139.7798),
    Airport(iata="ICN", icao="RKSI", name="Incheon International", city="Seoul", country="South Korea", latitude=37.4691, longitude=126.4505),
    Airport(iata="PEK", icao="ZBAA", name="Beijing Capital International", city="Beijing", country="China", latitude=40.0799, longitude=116.6031),
    Airport(iata="PVG", icao="ZSPD", name="Shanghai Pudong International", city="Shanghai", country="China", latitude=31.1443, longitude=121.8083),
    Airport(iata="BKK", icao="VTBS", name="Suvarnabhumi Airport", city="Bangkok", country="Thailand", latitude=13.6900, longitude=100.7501),
    Airport(iata="KUL", icao="WMKK", name="Kuala Lumpur International", city="Kuala Lumpur", country="Malaysia", latitude=2.7456, longitude=101.7099),
    Airport(iata="DEL", icao="VIDP", name="Indira Gandhi International", city="New Delhi", country="India", latitude=28.5562, longitude=77.1000),
    Airport(iata="BOM", icao="VABB", name="Chhatrapati Shivaji International", city="Mumbai", country="India", latitude=19.0896, longitude=72.8656),
    Airport(iata="SYD", icao="YSSY", name="Sydney Kingsford Smith", city="Sydney", country="Australia", latitude=-33.9399, longitude=151.1753),
    Airport(iata="MEL", icao="YMML", name="Melbourne Airport", city="Melbourne", country="Australia", latitude=-37.6690, longitude=144.8410),
    Airport(iata="AKL", icao="NZAA", name="Auckland Airport", city="Auckland", country="New Zealand", latitude=-37.0082, longitude=174.7850),
    Airport(iata="DOH", icao="OTHH", name="Hamad International", city="Doha", country="Qatar", latitude=25.2731, longitude=51.6081),
    Airport(iata="GRU", icao="SBGR", name="São Paulo–Guarulhos International", city="São Paulo", country="Brazil", latitude=-23.4356, longitude=-46.4731),
    Airport(iata="EZE", icao="SAEZ", name="Ministro Pistarini International", city="Buenos Aires", country="Argentina", latitude=-34.8222, longitude=-58.5358),
    Airport(iata="JNB", icao="FAOR", name="O.R. Tambo International", city="Johannesburg", country="South Africa", latitude=-26.1367, longitude=28.2411),
    Airport(iata="CAI", icao="HECA", name="Cairo International", city="Cairo", country="Egypt", latitude=30.1219, longitude=31.4056),
)
